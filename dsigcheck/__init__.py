"""
Use :class:`dsigcheck.SignatureValidator` to validate every XML Signature embedded in a document, and
:func:`dsigcheck.resolve_key` to apply the key selection policy on its own.
"""

from .algorithms import CanonicalizationMethod, DigestAlgorithm, SignatureMethod, TransformMethod
from .engine import DOMSignatureEngine, SignatureEngine, ValidateContext, XMLSignature, load_engine
from .exceptions import (
    EngineInitError,
    InputError,
    InvalidDigest,
    InvalidInput,
    InvalidSignature,
    KeyExtractionError,
    KeySelectorException,
    MissingKeyInfo,
    NoCompatibleKey,
    NoSignatureFound,
    UsageError,
)
from .keyinfo import KeyInfo, KeyValueEntry, X509CertificateItem, X509DataEntry, X509OtherItem, key_algorithm
from .resolver import KeyResolution, KeySelector, KeyValueKeySelector, algorithm_compatible, resolve_key
from .util import namespaces
from .validator import (
    ReferenceOutcome,
    SignatureOutcome,
    SignatureValidator,
    ValidationConfiguration,
    find_signatures,
    load_document,
    render_report,
)
