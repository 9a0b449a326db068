"""
The signature engine: unmarshals ``ds:Signature`` elements and validates them against keys supplied by a
:class:`dsigcheck.resolver.KeySelector`.

Canonicalization is performed by lxml and all digest and public key operations by cryptography. Validation results
are cached on the unmarshaled objects, so asking for the status of the same signature value or reference twice never
recomputes it.
"""

import importlib
import logging
from base64 import b64decode
from typing import List, Optional, Tuple, Union

from cryptography.exceptions import InvalidSignature as CryptographyInvalidSignature
from cryptography.hazmat.primitives.asymmetric import dsa, ec, rsa, utils
from cryptography.hazmat.primitives.asymmetric.padding import MGF1, PSS, PKCS1v15
from lxml import etree

from .algorithms import (
    CanonicalizationMethod,
    DigestAlgorithm,
    SignatureMethod,
    TransformMethod,
    digest_algorithm_implementations,
)
from .exceptions import EngineInitError, InvalidDigest, InvalidInput, InvalidSignature
from .keyinfo import KeyInfo
from .processor import XMLSignatureProcessor
from .util import _remove_sig, bits_to_bytes_unit, bytes_to_long, ds_tag, namespaces

logger = logging.getLogger(__name__)

DEFAULT_ENGINE = "dsigcheck.engine.DOMSignatureEngine"

Transform = Tuple[Union[TransformMethod, CanonicalizationMethod], Optional[List[str]]]


class ValidateContext:
    """
    Per-signature validation state: the key selector to obtain verification keys from, and the ``ds:Signature``
    node within its document.

    :param key_selector: A :class:`dsigcheck.resolver.KeySelector`.
    :param node: The ``ds:Signature`` element to validate. Its document provides same-document reference targets.
    :param uri_resolver:
        Function used to resolve reference URIs that are not empty and don't start with "#". Called with the URI,
        expected to return an :class:`lxml.etree._Element` node or bytes. If unset, such references fail.
    :param id_attributes: Names of the attributes a ``#id`` URI may refer to.
    """

    def __init__(self, key_selector, node, uri_resolver=None, id_attributes=None):
        if node.tag != ds_tag("Signature"):
            raise InvalidInput(f"Expected a Signature element, got {node.tag}")
        self.key_selector = key_selector
        self.node = node
        self.uri_resolver = uri_resolver
        self.id_attributes = tuple(id_attributes) if id_attributes else None

    @property
    def document_root(self):
        return self.node.getroottree().getroot()

    @property
    def signature_path(self) -> str:
        return self.node.getroottree().getpath(self.node)


class Reference:
    def __init__(self, engine, *, index, uri, transforms, digest_method, digest_value, id=None):
        self._engine = engine
        self.index = index
        self.uri: Optional[str] = uri
        self.transforms: List[Transform] = transforms
        self.digest_method: DigestAlgorithm = digest_method
        self.digest_value: bytes = digest_value
        self.id = id
        self.reason: Optional[str] = None
        self._validity: Optional[bool] = None

    def validate(self, context: ValidateContext) -> bool:
        if self._validity is None:
            try:
                self._engine._verify_reference(self, context)
                self._validity = True
            except (InvalidInput, InvalidSignature, ValueError, etree.LxmlError) as e:
                self.reason = str(e)
                self._validity = False
        return self._validity

    def __repr__(self):
        return f"{self.__class__.__name__}(index={self.index}, uri={self.uri!r})"


class SignedInfo:
    def __init__(self, element, *, canonicalization_method, inclusive_ns_prefixes, signature_method, references):
        self.element = element
        self.canonicalization_method: CanonicalizationMethod = canonicalization_method
        self.inclusive_ns_prefixes: Optional[List[str]] = inclusive_ns_prefixes
        self.signature_method: SignatureMethod = signature_method
        self.references: List[Reference] = references


class SignatureValue:
    def __init__(self, engine, signature, value, id=None):
        self._engine = engine
        self._signature = signature
        self.value: bytes = value
        self.id = id
        self.key_source: Optional[str] = None
        self.reason: Optional[str] = None
        self._validity: Optional[bool] = None

    def validate(self, context: ValidateContext) -> bool:
        if self._validity is None:
            self._validity = self._engine._validate_signature_value(self._signature, self, context)
        return self._validity


class XMLSignature:
    def __init__(self, engine, element, *, signed_info, value, key_info, id=None):
        self.element = element
        self.signed_info: SignedInfo = signed_info
        self.signature_value = SignatureValue(engine, self, value)
        self.key_info: Optional[KeyInfo] = key_info
        self.id = id
        self._validity: Optional[bool] = None

    def validate(self, context: ValidateContext) -> bool:
        """
        Perform core validation: the signature value first and, only if it verifies, every reference in order.
        """
        if self._validity is None:
            validity = self.signature_value.validate(context)
            if validity:
                validity = all(reference.validate(context) for reference in self.signed_info.references)
            self._validity = validity
        return self._validity


class SignatureEngine:
    """
    Interface of a signature engine. Engines are loaded by dotted name with :func:`load_engine`.
    """

    def unmarshal_xml_signature(self, context: ValidateContext) -> XMLSignature:
        raise NotImplementedError()


class DOMSignatureEngine(XMLSignatureProcessor, SignatureEngine):
    """
    The default signature engine, operating on lxml element trees.
    """

    _default_reference_c14n_method = CanonicalizationMethod.CANONICAL_XML_1_0

    def _get_inclusive_ns_prefixes(self, transform_node):
        inclusive_namespaces = transform_node.find("./ec:InclusiveNamespaces[@PrefixList]", namespaces=namespaces)
        if inclusive_namespaces is None:
            return None
        else:
            return inclusive_namespaces.get("PrefixList").split(" ")

    def _get_transforms(self, transforms_node) -> List[Transform]:
        transforms: List[Transform] = []
        if transforms_node is None:
            return transforms
        for transform in self._findall(transforms_node, "Transform"):
            algorithm = transform.get("Algorithm")
            try:
                transforms.append((TransformMethod(algorithm), None))
            except InvalidInput:
                transforms.append((CanonicalizationMethod(algorithm), self._get_inclusive_ns_prefixes(transform)))
        return transforms

    def unmarshal_xml_signature(self, context: ValidateContext) -> XMLSignature:
        """
        Build an :class:`XMLSignature` from the context's ``ds:Signature`` node. The node is not modified.

        :raises: :class:`dsigcheck.exceptions.InvalidInput` if the structure is incomplete or names an unsupported
            algorithm or transform.
        """
        # HACK: deep copy won't keep root's namespaces
        signature = self._fromstring(self._tostring(context.node, with_tail=False))

        signed_info_node = self._find(signature, "SignedInfo")
        c14n_method = self._find(signed_info_node, "CanonicalizationMethod")
        signature_method = self._find(signed_info_node, "SignatureMethod")
        references = []
        for index, reference in enumerate(self._findall(signed_info_node, "Reference")):
            references.append(
                Reference(
                    self,
                    index=index,
                    uri=reference.get("URI"),
                    transforms=self._get_transforms(self._find(reference, "Transforms", require=False)),
                    digest_method=DigestAlgorithm(self._find(reference, "DigestMethod").get("Algorithm")),
                    digest_value=b64decode(self._find(reference, "DigestValue").text or ""),
                    id=reference.get("Id"),
                )
            )
        if len(references) == 0:
            raise InvalidInput("Expected to find at least one Reference in SignedInfo")

        signed_info = SignedInfo(
            signed_info_node,
            canonicalization_method=CanonicalizationMethod(c14n_method.get("Algorithm")),
            inclusive_ns_prefixes=self._get_inclusive_ns_prefixes(c14n_method),
            signature_method=SignatureMethod(signature_method.get("Algorithm")),
            references=references,
        )
        key_info_node = self._find(signature, "KeyInfo", require=False)
        key_info = KeyInfo.from_element(key_info_node) if key_info_node is not None else None
        signature_value = self._find(signature, "SignatureValue")
        logger.debug(
            "Unmarshaled signature %s: %s, %d reference(s)",
            context.signature_path,
            signed_info.signature_method.name,
            len(references),
        )
        return XMLSignature(
            self,
            signature,
            signed_info=signed_info,
            value=b64decode(signature_value.text or ""),
            key_info=key_info,
            id=signature.get("Id"),
        )

    def _validate_signature_value(self, signature: XMLSignature, signature_value: SignatureValue, context) -> bool:
        signed_info = signature.signed_info
        signature_alg = signed_info.signature_method
        resolution = context.key_selector.select(signature.key_info, signature_alg)
        if not resolution.ok:
            signature_value.reason = f"{type(resolution.error).__name__}: {resolution.error}"
            logger.info("Unable to obtain a key for %s: %s", context.signature_path, signature_value.reason)
            return False
        signature_value.key_source = resolution.source

        signed_info_c14n = self._c14n(
            signed_info.element,
            algorithm=signed_info.canonicalization_method,
            inclusive_ns_prefixes=signed_info.inclusive_ns_prefixes,
        )
        try:
            self._verify_signature_with_pubkey(signed_info_c14n, signature_value.value, resolution.key, signature_alg)
        except (CryptographyInvalidSignature, InvalidInput) as e:
            signature_value.reason = str(e) or "Signature verification failed"
            logger.info("Signature value of %s did not verify: %s", context.signature_path, signature_value.reason)
            return False
        return True

    def _verify_signature_with_pubkey(self, signed_info_c14n: bytes, raw_signature: bytes, key, signature_alg):
        digest_alg_impl = digest_algorithm_implementations[signature_alg]()
        family = signature_alg.family
        if family == "ECDSA":
            if not isinstance(key, ec.EllipticCurvePublicKey):
                raise InvalidInput("Key does not match specified signature algorithm")
            dss_signature = self._encode_dss_signature(raw_signature, key.curve.key_size)
            key.verify(dss_signature, data=signed_info_c14n, signature_algorithm=ec.ECDSA(digest_alg_impl))
        elif family == "DSA":
            if not isinstance(key, dsa.DSAPublicKey):
                raise InvalidInput("Key does not match specified signature algorithm")
            q_bits = key.parameters().parameter_numbers().q.bit_length()
            dss_signature = self._encode_dss_signature(raw_signature, q_bits)
            key.verify(dss_signature, data=signed_info_c14n, algorithm=digest_alg_impl)
        elif family in ("RSA", "RSA-PSS"):
            if not isinstance(key, rsa.RSAPublicKey):
                raise InvalidInput("Key does not match specified signature algorithm")
            if family == "RSA":
                padding = PKCS1v15()
            else:
                padding = PSS(mgf=MGF1(algorithm=digest_alg_impl), salt_length=digest_alg_impl.digest_size)
            key.verify(raw_signature, data=signed_info_c14n, padding=padding, algorithm=digest_alg_impl)
        else:
            raise InvalidInput(f"Signature method {signature_alg.name} requires a secret key")

    def _encode_dss_signature(self, raw_signature: bytes, key_size_bits: int) -> bytes:
        want_raw_signature_len = bits_to_bytes_unit(key_size_bits) * 2
        if len(raw_signature) != want_raw_signature_len:
            raise InvalidSignature(
                "Expected %d byte SignatureValue, got %d" % (want_raw_signature_len, len(raw_signature))
            )
        int_len = len(raw_signature) // 2
        r = bytes_to_long(raw_signature[:int_len])
        s = bytes_to_long(raw_signature[int_len:])
        return utils.encode_dss_signature(r, s)

    def _apply_transforms(self, payload, *, transforms: List[Transform], signature):
        c14n_applied = False

        for method, _ in transforms:
            if method == TransformMethod.ENVELOPED_SIGNATURE:
                _remove_sig(signature, idempotent=True)

        for method, _ in transforms:
            if method == TransformMethod.BASE64:
                payload = b64decode(payload.text)

        for method, inclusive_ns_prefixes in transforms:
            if not isinstance(method, CanonicalizationMethod):
                continue
            # Create a separate copy of the node so we can modify the tree and avoid any c14n inconsistencies from
            # namespaces propagating from parent nodes.
            if isinstance(payload, bytes):
                payload = self._fromstring(payload)
            else:
                payload = self._fromstring(self._tostring(payload, with_tail=False))
            payload = self._c14n(payload, algorithm=method, inclusive_ns_prefixes=inclusive_ns_prefixes)
            c14n_applied = True

        if not c14n_applied and not isinstance(payload, (str, bytes)):
            payload = self._c14n(payload, algorithm=self._default_reference_c14n_method)

        return payload

    def _find_copied_node(self, node, copied_root):
        # The copy is serialized from the same root, so nodes line up by document order position.
        for original, copied in zip(node.getroottree().getroot().iter(), copied_root.iter()):
            if original is node:
                return copied
        raise InvalidInput(f"Unable to locate {node.tag} in the copied document")

    def _verify_reference(self, reference: Reference, context: ValidateContext):
        copied_root = self._fromstring(self._tostring(context.document_root))
        copied_signature = self._find_copied_node(context.node, copied_root)
        payload = self._resolve_reference(
            copied_root, reference.uri, uri_resolver=context.uri_resolver, id_attributes=context.id_attributes
        )
        payload_c14n = self._apply_transforms(payload, transforms=reference.transforms, signature=copied_signature)

        if reference.digest_value != self._get_digest(payload_c14n, reference.digest_method):
            raise InvalidDigest(f"Digest mismatch for reference {reference.index} ({reference.uri})")


def load_engine(name: Optional[str] = None) -> SignatureEngine:
    """
    Instantiate a signature engine given the dotted name of its class (``package.module.Class`` or
    ``package.module:Class``). Defaults to :class:`DOMSignatureEngine`.

    :raises: :class:`dsigcheck.exceptions.EngineInitError`
    """
    name = name or DEFAULT_ENGINE
    if ":" in name:
        module_name, _, class_name = name.partition(":")
    else:
        module_name, _, class_name = name.rpartition(".")
    if not module_name or not class_name:
        raise EngineInitError(f"Invalid signature engine name: {name}")
    try:
        engine_class = getattr(importlib.import_module(module_name), class_name)
    except (ImportError, AttributeError) as e:
        raise EngineInitError(f"Unable to load signature engine {name}: {e}")
    try:
        engine = engine_class()
    except Exception as e:
        raise EngineInitError(f"Unable to instantiate signature engine {name}: {e}")
    if not callable(getattr(engine, "unmarshal_xml_signature", None)):
        raise EngineInitError(f"{name} is not a signature engine")
    logger.debug("Loaded signature engine %s", name)
    return engine
