"""
zero_reveal_sd/canonicalize.py
Reference statement canonicalizer, pointer grouping and statement hashing.

A JSON document is read as a graph: every object is a node, named by its
string "id" or otherwise a blank node, and every other property yields one
N-Quads style statement per value:

    _:c14n0 <name> "Alice" .
    _:c14n0 <degree> _:c14n1 .

Blank nodes get canonical labels "c14n<N>" ordered by a hash of their
outgoing statements (ties broken by document order), which a label-map
factory may then replace, e.g. with HMAC-blinded labels.
"""
import copy
import hashlib
import itertools
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .config import CANONICAL_LABEL_PREFIX, SKOLEM_PREFIX
from .crypto import HmacLabeler, sha256_digest
from .errors import ValidationError, VerificationError
from .select import select_json

XSD = "http://www.w3.org/2001/XMLSchema#"

LabelMapFactory = Callable[[Dict[str, str]], Dict[str, str]]


@dataclass(frozen=True)
class BlankNode:
    label: str


Term = Union[str, BlankNode]
Quad = Tuple[Term, str, Term]


@dataclass
class StatementGroup:
    """Statements of the full document split by a set of pointers.

    matching and non_matching map absolute statement index to statement,
    in ascending index order.
    """
    matching: Dict[int, str] = field(default_factory=dict)
    non_matching: Dict[int, str] = field(default_factory=dict)
    selection: Optional[Dict[str, Any]] = None


@dataclass
class CanonicalGroups:
    statements: List[str]
    groups: Dict[str, StatementGroup]
    label_map: Dict[str, str]


def skolemize(document: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy where every blank object carries a urn:bnid: id."""
    counter = itertools.count()

    def visit(value):
        if isinstance(value, dict):
            node = {}
            if 'id' not in value:
                node['id'] = f'{SKOLEM_PREFIX}b{next(counter)}'
            for key, item in value.items():
                node[key] = copy.deepcopy(item) if key == '@context' else visit(item)
            return node
        if isinstance(value, list):
            return [visit(item) for item in value]
        return value

    return visit(document)


def deskolemize(document: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy with every urn:bnid: id removed."""
    def visit(value):
        if isinstance(value, dict):
            return {
                key: copy.deepcopy(item) if key == '@context' else visit(item)
                for key, item in value.items()
                if not (key == 'id' and isinstance(item, str) and
                        item.startswith(SKOLEM_PREFIX))
            }
        if isinstance(value, list):
            return [visit(item) for item in value]
        return value

    return visit(document)


def canonicalize(
    document: Dict[str, Any],
    label_map_factory: Optional[LabelMapFactory] = None
) -> List[str]:
    """Canonicalize a document into its sorted statement list."""
    statements, _ = label_replacement_canonicalize(document, label_map_factory)
    return statements


def label_replacement_canonicalize(
    document: Dict[str, Any],
    label_map_factory: Optional[LabelMapFactory] = None
) -> Tuple[List[str], Dict[str, str]]:
    """Canonicalize a document, relabelling blank nodes through a factory.

    Args:
        document: JSON document
        label_map_factory: Maps {input label: canonical id} to
            {input label: output label}; canonical ids are kept if None

    Returns:
        (sorted, de-duplicated statements, {input label: output label})
    """
    quads, blank_nodes = _to_quads(document)
    canonical_id_map = _canonical_id_map(quads, blank_nodes)
    if label_map_factory is None:
        label_map = canonical_id_map
    else:
        label_map = label_map_factory(canonical_id_map)
    statements = sorted({_serialize_quad(quad, label_map) for quad in quads})
    return statements, label_map


def canonicalize_and_group(
    document: Dict[str, Any],
    label_map_factory: LabelMapFactory,
    groups: Dict[str, Sequence[str]]
) -> CanonicalGroups:
    """Canonicalize a document and split its statements by pointer groups.

    Args:
        document: JSON document without its proof
        label_map_factory: Blank-node relabelling (see create_*_label_map_function)
        groups: Group name -> JSON pointers

    Returns:
        CanonicalGroups with the full statement list, one StatementGroup per
        name and the input -> output blank-node label map
    """
    skolemized = skolemize(document)
    statements, label_map = label_replacement_canonicalize(
        skolemized, label_map_factory)

    result = {}
    for name, pointers in groups.items():
        selection = select_json(skolemized, pointers)
        selected = set()
        if selection is not None:
            quads, _ = _to_quads(selection)
            selected = {_serialize_quad(quad, label_map) for quad in quads}

        group = StatementGroup(selection=selection)
        for index, statement in enumerate(statements):
            if statement in selected:
                group.matching[index] = statement
            else:
                group.non_matching[index] = statement
        result[name] = group

    return CanonicalGroups(
        statements=statements, groups=result, label_map=label_map)


def create_hmac_label_map_function(labeler: HmacLabeler) -> LabelMapFactory:
    """Label map factory replacing canonical ids with HMAC-blinded labels."""
    def factory(canonical_id_map: Dict[str, str]) -> Dict[str, str]:
        return {
            input_label: labeler.label(canonical_id)
            for input_label, canonical_id in canonical_id_map.items()
        }
    return factory


def create_label_map_function(label_map: Dict[str, str]) -> LabelMapFactory:
    """Label map factory looking canonical ids up in a disclosed label map."""
    def factory(canonical_id_map: Dict[str, str]) -> Dict[str, str]:
        bnode_id_map = {}
        for input_label, canonical_id in canonical_id_map.items():
            if canonical_id not in label_map:
                raise VerificationError(
                    f'Blank node "{canonical_id}" has no label in the proof '
                    f'label map.')
            bnode_id_map[input_label] = label_map[canonical_id]
        return bnode_id_map
    return factory


def hash_mandatory(mandatory: Sequence[str]) -> bytes:
    """SHA-256 over the concatenated mandatory statements."""
    return sha256_digest(''.join(mandatory).encode('utf-8'))


def hash_canonized_proof(document: Dict[str, Any], proof: Dict[str, Any]) -> bytes:
    """SHA-256 over the canonical form of the proof options.

    The proof options are the proof without its proofValue, evaluated under
    the document's @context.
    """
    options = {key: value for key, value in proof.items() if key != 'proofValue'}
    if '@context' in document:
        options['@context'] = document['@context']
    statements = canonicalize(options)
    return sha256_digest(''.join(statements).encode('utf-8'))


def _to_quads(document: Dict[str, Any]) -> Tuple[List[Quad], List[BlankNode]]:
    quads: List[Quad] = []
    blank_nodes: List[BlankNode] = []
    seen = set()
    anonymous = itertools.count()

    def emit(node: Dict[str, Any]) -> Term:
        node_id = node.get('id')
        if node_id is None:
            subject = BlankNode(f'a{next(anonymous)}')
        elif not isinstance(node_id, str):
            raise ValidationError('"id" values must be strings.')
        elif node_id.startswith(SKOLEM_PREFIX):
            subject = BlankNode(node_id[len(SKOLEM_PREFIX):])
        else:
            subject = f'<{node_id}>'
        if isinstance(subject, BlankNode) and subject not in seen:
            seen.add(subject)
            blank_nodes.append(subject)

        for key, value in node.items():
            if key in ('id', '@context'):
                continue
            for item in _flatten(value):
                if item is None:
                    continue
                if isinstance(item, dict):
                    quads.append((subject, f'<{key}>', emit(item)))
                else:
                    quads.append((subject, f'<{key}>', _literal(item)))
        return subject

    if not isinstance(document, dict):
        raise ValidationError('Documents must be JSON objects.')
    emit(document)
    return quads, blank_nodes


def _flatten(value: Any) -> List[Any]:
    if isinstance(value, list):
        return [leaf for item in value for leaf in _flatten(item)]
    return [value]


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return f'"{str(value).lower()}"^^<{XSD}boolean>'
    if isinstance(value, int):
        return f'"{value}"^^<{XSD}integer>'
    if isinstance(value, float):
        return f'"{value!r}"^^<{XSD}double>'
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    raise ValidationError(f'Unsupported value type: {type(value).__name__}')


def _canonical_id_map(
    quads: List[Quad],
    blank_nodes: List[BlankNode]
) -> Dict[str, str]:
    outgoing: Dict[BlankNode, List[Tuple[str, Term]]] = {
        node: [] for node in blank_nodes}
    for subject, predicate, obj in quads:
        if isinstance(subject, BlankNode):
            outgoing[subject].append((predicate, obj))

    hashes: Dict[BlankNode, str] = {}

    def node_hash(node: BlankNode) -> str:
        if node not in hashes:
            parts = sorted(
                f'{predicate} _:{node_hash(obj)}' if isinstance(obj, BlankNode)
                else f'{predicate} {obj}'
                for predicate, obj in outgoing[node]
            )
            hashes[node] = hashlib.sha256(
                '\n'.join(parts).encode('utf-8')).hexdigest()
        return hashes[node]

    order = sorted(
        range(len(blank_nodes)),
        key=lambda i: (node_hash(blank_nodes[i]), i)
    )
    return {
        blank_nodes[i].label: f'{CANONICAL_LABEL_PREFIX}{rank}'
        for rank, i in enumerate(order)
    }


def _serialize_quad(quad: Quad, label_map: Dict[str, str]) -> str:
    subject, predicate, obj = quad
    return f'{_term(subject, label_map)} {predicate} {_term(obj, label_map)} .\n'


def _term(term: Term, label_map: Dict[str, str]) -> str:
    if isinstance(term, BlankNode):
        return f'_:{label_map[term.label]}'
    return term
