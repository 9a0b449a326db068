"""
Key selection policy: pick the verification key for a signature out of its own ``ds:KeyInfo``.

Entries are examined in document order. A ``KeyValue`` contributes its embedded key; an ``X509Data`` contributes the
public key of each ``X509Certificate`` it holds, in order. The first candidate whose algorithm is compatible with the
declared signature method wins. Compatibility is a deliberately narrow whitelist: DSA keys with ``dsa-sha1`` and RSA
keys with ``rsa-sha1``, nothing else.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union

from .algorithms import SignatureMethod
from .exceptions import KeyException, KeyExtractionError, KeySelectorException, MissingKeyInfo, NoCompatibleKey
from .keyinfo import KeyInfo, KeyValueEntry, X509CertificateItem, X509DataEntry, key_algorithm

logger = logging.getLogger(__name__)

_compatible_algorithms = {
    "dsa": SignatureMethod.DSA_SHA1.value.lower(),
    "rsa": SignatureMethod.RSA_SHA1.value.lower(),
}


def algorithm_compatible(signature_algorithm: str, key_algorithm_name: str) -> bool:
    return _compatible_algorithms.get(key_algorithm_name.lower()) == signature_algorithm.lower()


@dataclass(frozen=True)
class KeyResolution:
    """
    Outcome of a key selection: either ``key`` (with a description of where it came from in ``source``) or ``error``.
    """

    key: Any = None
    source: Optional[str] = None
    error: Optional[KeySelectorException] = None
    rejected: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    "(source, key algorithm) pairs that were examined and found incompatible, in the order they were seen"

    @property
    def ok(self) -> bool:
        return self.error is None

    def get_key(self):
        if self.error is not None:
            raise self.error
        return self.key


def resolve_key(key_info: Optional[KeyInfo], signature_algorithm: Union[str, SignatureMethod]) -> KeyResolution:
    if isinstance(signature_algorithm, SignatureMethod):
        signature_algorithm = signature_algorithm.value
    if key_info is None:
        return KeyResolution(error=MissingKeyInfo("Signature has no KeyInfo"))

    rejected: List[Tuple[str, str]] = []

    def candidates():
        for i, entry in enumerate(key_info.content):
            if isinstance(entry, KeyValueEntry):
                yield f"KeyValue[{i}]", entry.get_public_key()
            elif isinstance(entry, X509DataEntry):
                for j, item in enumerate(entry.content):
                    if isinstance(item, X509CertificateItem):
                        yield f"X509Data[{i}]/X509Certificate[{j}]", item.get_public_key()
            else:
                raise TypeError(f"Unexpected KeyInfo entry {entry!r}")

    try:
        for source, public_key in candidates():
            algorithm = key_algorithm(public_key)
            if algorithm_compatible(signature_algorithm, algorithm):
                logger.debug("Selected %s key from %s for %s", algorithm, source, signature_algorithm)
                return KeyResolution(key=public_key, source=source, rejected=tuple(rejected))
            logger.debug("Rejected %s key from %s for %s", algorithm, source, signature_algorithm)
            rejected.append((source, algorithm))
    except KeyException as e:
        return KeyResolution(error=KeyExtractionError(str(e)), rejected=tuple(rejected))

    msg = f"No key compatible with {signature_algorithm} found in KeyInfo"
    if rejected:
        msg += " (rejected: " + ", ".join(f"{source}={algorithm}" for source, algorithm in rejected) + ")"
    return KeyResolution(error=NoCompatibleKey(msg), rejected=tuple(rejected))


class KeySelector:
    """
    Supplies verification keys to the signature engine. Subclasses implement :meth:`select`.
    """

    def select(self, key_info: Optional[KeyInfo], signature_method: SignatureMethod) -> KeyResolution:
        raise NotImplementedError()


class KeyValueKeySelector(KeySelector):
    """
    Selects the first ``KeyValue`` or ``X509Certificate`` key compatible with the signature method. See
    :func:`resolve_key`.
    """

    def select(self, key_info, signature_method):
        return resolve_key(key_info, signature_method)
