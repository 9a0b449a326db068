"""
The ``ds:KeyInfo`` model consumed by key selectors.

Only the two key-bearing structures the key selection policy understands are modelled: ``ds:KeyValue`` and
``ds:X509Data``. Every other ``KeyInfo`` child (``KeyName``, ``RetrievalMethod``, ``dsig11:DEREncodedKeyValue``, ...)
is dropped during unmarshaling.
"""

import binascii
import logging
from base64 import b64decode
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import dsa, ec, rsa
from lxml import etree

from .exceptions import InvalidInput, KeyException
from .processor import XMLSignatureProcessor
from .util import bytes_to_long, ds_tag, dsig11_tag, namespaces

logger = logging.getLogger(__name__)


def key_algorithm(public_key) -> str:
    """
    Return the algorithm name a public key is tagged with: ``RSA``, ``DSA``, ``EC``, or the key class name for any
    other key type.
    """
    if isinstance(public_key, rsa.RSAPublicKey):
        return "RSA"
    elif isinstance(public_key, dsa.DSAPublicKey):
        return "DSA"
    elif isinstance(public_key, ec.EllipticCurvePublicKey):
        return "EC"
    return type(public_key).__name__


def _b64_long(element, query, require=True):
    result = element.find(f"ds:{query}", namespaces=namespaces)
    if result is None:
        if require:
            raise KeyException(f"Expected to find XML element {query} in {etree.QName(element).localname}")
        return None
    try:
        return bytes_to_long(b64decode(result.text or ""))
    except binascii.Error as e:
        raise KeyException(f"Malformed {query} value: {e}")


@dataclass(frozen=True)
class KeyValueEntry:
    element: etree._Element

    def get_public_key(self):
        """
        Decode the embedded public key.

        :raises: :class:`dsigcheck.exceptions.KeyException` if the key encoding is malformed or of an unsupported type.
        """
        children = [child for child in self.element if isinstance(child.tag, str)]
        if len(children) == 0:
            raise KeyException("KeyValue element is empty")
        key_value = children[0]
        try:
            if key_value.tag == ds_tag("RSAKeyValue"):
                modulus = _b64_long(key_value, "Modulus")
                exponent = _b64_long(key_value, "Exponent")
                return rsa.RSAPublicNumbers(e=exponent, n=modulus).public_key()
            elif key_value.tag == ds_tag("DSAKeyValue"):
                p = _b64_long(key_value, "P")
                q = _b64_long(key_value, "Q")
                g = _b64_long(key_value, "G")
                y = _b64_long(key_value, "Y")
                return dsa.DSAPublicNumbers(y=y, parameter_numbers=dsa.DSAParameterNumbers(p=p, q=q, g=g)).public_key()
            elif key_value.tag == dsig11_tag("ECKeyValue"):
                return self._get_ec_public_key(key_value)
        except (UnsupportedAlgorithm, ValueError) as e:
            raise KeyException(f"Invalid {etree.QName(key_value).localname}: {e}")
        raise KeyException(f"Unsupported KeyValue type: {key_value.tag}")

    @staticmethod
    def _get_ec_public_key(ec_key_value):
        named_curve = ec_key_value.find("dsig11:NamedCurve", namespaces=namespaces)
        public_key = ec_key_value.find("dsig11:PublicKey", namespaces=namespaces)
        if named_curve is None or public_key is None:
            raise KeyException("ECKeyValue requires NamedCurve and PublicKey elements")
        curve_class = XMLSignatureProcessor.known_ecdsa_curves.get(named_curve.get("URI"))
        if curve_class is None:
            raise KeyException(f"Unsupported named curve: {named_curve.get('URI')}")
        try:
            point = b64decode(public_key.text or "")
        except binascii.Error as e:
            raise KeyException(f"Malformed PublicKey value: {e}")
        return ec.EllipticCurvePublicKey.from_encoded_point(curve_class(), point)


@dataclass(frozen=True)
class X509CertificateItem:
    certificate: x509.Certificate

    def get_public_key(self):
        try:
            return self.certificate.public_key()
        except (UnsupportedAlgorithm, ValueError) as e:
            raise KeyException(f"Unable to extract certificate public key: {e}")


@dataclass(frozen=True)
class X509OtherItem:
    """
    An ``X509Data`` child that is not a certificate (issuer serial, subject name, SKI, CRL or digest).
    """

    element: etree._Element

    @property
    def name(self) -> str:
        return etree.QName(self.element).localname


X509DataItem = Union[X509CertificateItem, X509OtherItem]


@dataclass(frozen=True)
class X509DataEntry:
    content: Tuple[X509DataItem, ...]

    @classmethod
    def from_element(cls, element):
        items = []
        for child in element:
            if not isinstance(child.tag, str):
                continue
            if child.tag == ds_tag("X509Certificate"):
                try:
                    cert = x509.load_der_x509_certificate(b64decode(child.text or ""))
                except (binascii.Error, ValueError) as e:
                    raise InvalidInput(f"Unable to decode X509Certificate: {e}")
                items.append(X509CertificateItem(cert))
            else:
                items.append(X509OtherItem(child))
        return cls(tuple(items))


KeyInfoEntry = Union[KeyValueEntry, X509DataEntry]


@dataclass(frozen=True)
class KeyInfo:
    content: Tuple[KeyInfoEntry, ...]
    id: Optional[str] = None

    @classmethod
    def from_element(cls, element):
        entries = []
        for child in element:
            if not isinstance(child.tag, str):
                continue
            if child.tag == ds_tag("KeyValue"):
                entries.append(KeyValueEntry(child))
            elif child.tag == ds_tag("X509Data"):
                entries.append(X509DataEntry.from_element(child))
            else:
                logger.debug("Skipping unsupported KeyInfo child %s", child.tag)
        return cls(tuple(entries), id=element.get("Id"))
