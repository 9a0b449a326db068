import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from lxml import etree

from .engine import DEFAULT_ENGINE, SignatureEngine, ValidateContext, load_engine
from .exceptions import InputError, InvalidInput, NoSignatureFound
from .processor import XMLProcessor, XMLSignatureProcessor
from .resolver import KeySelector, KeyValueKeySelector
from .util import namespaces

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationConfiguration:
    """
    Settings for a :class:`SignatureValidator` run.
    """

    engine: str = DEFAULT_ENGINE
    """
    Dotted name of the signature engine class to load, see :func:`dsigcheck.engine.load_engine`.
    """

    id_attributes: Tuple[str, ...] = XMLSignatureProcessor.id_attributes
    """
    Attribute names searched, in order, when resolving same-document ``#id`` reference URIs.
    """


@dataclass(frozen=True)
class ReferenceOutcome:
    index: int
    uri: Optional[str]
    valid: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class SignatureOutcome:
    """
    The validation outcome of one ``ds:Signature`` element. When core validation passes, ``signature_value_valid``
    is None and ``references`` is empty; when it fails, both are populated unless the signature could not be
    unmarshaled at all, in which case only ``reason`` explains why.
    """

    index: int
    core_valid: bool
    signature_value_valid: Optional[bool] = None
    references: Tuple[ReferenceOutcome, ...] = field(default_factory=tuple)
    reason: Optional[str] = None

    def report_lines(self) -> List[str]:
        if self.core_valid:
            return [f"Signature {self.index} passed core validation"]
        lines = [f"Signature {self.index} failed core validation"]
        if self.signature_value_valid is None:
            lines.append(f"Signature {self.index} could not be unmarshaled: {self.reason}")
            return lines
        lines.append(f"Signature {self.index} validation status: {_bool_text(self.signature_value_valid)}")
        for reference in self.references:
            validity = _bool_text(reference.valid)
            lines.append(f"Signature {self.index} ref[{reference.index}] validity status: {validity}")
        return lines


def _bool_text(value):
    return "true" if value else "false"


def render_report(outcomes) -> str:
    return "\n".join(line for outcome in outcomes for line in outcome.report_lines())


def load_document(path):
    """
    Parse the XML document at ``path``.

    :raises: :class:`dsigcheck.exceptions.InputError` if the file can't be read or is not well-formed XML.
    """
    try:
        return XMLProcessor().parse(path)
    except OSError as e:
        raise InputError(f"Unable to read {path}: {e}")
    except (etree.XMLSyntaxError, InvalidInput) as e:
        raise InputError(f"Unable to parse {path}: {e}")


def find_signatures(root) -> List[etree._Element]:
    """
    Return all ``ds:Signature`` elements at or below ``root``, in document order.

    :raises: :class:`dsigcheck.exceptions.NoSignatureFound`
    """
    signatures = list(root.iter(f"{{{namespaces.ds}}}Signature"))
    if len(signatures) == 0:
        raise NoSignatureFound("Cannot find Signature element")
    return signatures


class SignatureValidator:
    """
    Validate every XML Signature in a document and collect a :class:`SignatureOutcome` for each.

    :param engine: Signature engine to use. If not given, the engine named by ``config.engine`` is loaded.
    :param key_selector: Source of verification keys. Defaults to :class:`dsigcheck.resolver.KeyValueKeySelector`.
    :param config: A :class:`ValidationConfiguration`.
    :raises: :class:`dsigcheck.exceptions.EngineInitError` if the engine can't be loaded.
    """

    def __init__(
        self,
        engine: Optional[SignatureEngine] = None,
        key_selector: Optional[KeySelector] = None,
        config: ValidationConfiguration = ValidationConfiguration(),
    ):
        self.config = config
        self.engine = engine if engine is not None else load_engine(config.engine)
        self.key_selector = key_selector if key_selector is not None else KeyValueKeySelector()

    def validate_signature(self, index: int, node) -> SignatureOutcome:
        context = ValidateContext(self.key_selector, node, id_attributes=self.config.id_attributes)
        try:
            signature = self.engine.unmarshal_xml_signature(context)
        except (InvalidInput, ValueError, etree.LxmlError) as e:
            logger.info("Signature %d could not be unmarshaled: %s", index, e)
            return SignatureOutcome(index=index, core_valid=False, reason=str(e))

        if signature.validate(context):
            logger.info("Signature %d (%s) is valid", index, context.signature_path)
            return SignatureOutcome(index=index, core_valid=True)

        signature_value = signature.signature_value
        signature_value_valid = signature_value.validate(context)
        references = []
        for reference in signature.signed_info.references:
            valid = reference.validate(context)
            if not valid:
                logger.info("Signature %d reference %d failed: %s", index, reference.index, reference.reason)
            references.append(ReferenceOutcome(reference.index, reference.uri, valid, reference.reason))
        logger.info("Signature %d (%s) is invalid", index, context.signature_path)
        return SignatureOutcome(
            index=index,
            core_valid=False,
            signature_value_valid=signature_value_valid,
            references=tuple(references),
            reason=signature_value.reason,
        )

    def validate_document(self, document) -> List[SignatureOutcome]:
        """
        Validate each ``ds:Signature`` element of ``document`` (an element tree or its root element) in document
        order. Failing signatures are reported in the returned outcomes, not raised.

        :raises: :class:`dsigcheck.exceptions.NoSignatureFound`
        """
        root = document.getroot() if isinstance(document, etree._ElementTree) else document
        return [self.validate_signature(i, node) for i, node in enumerate(find_signatures(root))]

    def validate_file(self, path) -> List[SignatureOutcome]:
        return self.validate_document(load_document(path))
