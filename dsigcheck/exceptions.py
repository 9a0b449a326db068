"""
dsigcheck exception types.
"""

import cryptography.exceptions


class DSigCheckException(Exception):
    pass


class InvalidSignature(cryptography.exceptions.InvalidSignature, DSigCheckException):
    """
    Raised when signature validation fails.
    """


class InvalidDigest(InvalidSignature):
    """
    Raised when digest validation fails (causing the signature to be untrusted).
    """


class InvalidInput(ValueError, DSigCheckException):
    """
    Raised when a signature structure is malformed or uses an unsupported construct.
    """


class UsageError(DSigCheckException):
    pass


class InputError(DSigCheckException):
    """
    Raised when the input document cannot be read or parsed.
    """


class NoSignatureFound(DSigCheckException):
    """
    Raised when the input document contains no ``ds:Signature`` element.
    """


class EngineInitError(DSigCheckException):
    """
    Raised when the signature engine cannot be loaded or instantiated.
    """


class KeyException(DSigCheckException):
    """
    Raised when embedded key material cannot be decoded into a public key.
    """


class KeySelectorException(DSigCheckException):
    """
    Base class for key resolution failures. These never abort a run; the engine reports the affected signature as
    invalid.
    """


class MissingKeyInfo(KeySelectorException):
    pass


class KeyExtractionError(KeySelectorException):
    pass


class NoCompatibleKey(KeySelectorException):
    pass
