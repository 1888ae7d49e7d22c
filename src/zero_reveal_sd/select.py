"""
zero_reveal_sd/select.py
JSON pointer (RFC 6901) based selection of sub-documents.
"""
import copy
from typing import Any, Dict, List, Optional, Sequence

from .errors import SelectionError


class _SparseArray(dict):
    """Selected array elements keyed by their original position."""


def parse_pointer(pointer: str) -> List[str]:
    """Split a JSON pointer into unescaped reference tokens.

    Example:
        parse_pointer("/credentialSubject/a~1b")  # ['credentialSubject', 'a/b']

    Raises:
        SelectionError: If the pointer is not a string starting with '/'
    """
    if not isinstance(pointer, str) or not pointer.startswith('/'):
        raise SelectionError(f'JSON pointer "{pointer}" must start with "/".')
    return [
        token.replace('~1', '/').replace('~0', '~')
        for token in pointer.split('/')[1:]
    ]


def select_json(
    document: Dict[str, Any],
    pointers: Sequence[str]
) -> Optional[Dict[str, Any]]:
    """Build the sub-document reachable by the given pointers.

    Objects on every selected path keep their 'id' and 'type' so that the
    selection stays attached to the same nodes; array elements keep their
    original relative order.

    Args:
        document: Source document (not modified)
        pointers: JSON pointers to select

    Returns:
        New selection document, or None when no pointers are given

    Raises:
        SelectionError: If a pointer does not match the document
    """
    if not pointers:
        return None

    selection = _init_selection(document)
    if '@context' in document:
        selection['@context'] = copy.deepcopy(document['@context'])

    for pointer in pointers:
        _select_path(document, selection, parse_pointer(pointer), pointer)

    return _compact(selection)


def _init_selection(node: Dict[str, Any]) -> Dict[str, Any]:
    selection = {}
    for key in ('id', 'type'):
        if key in node:
            selection[key] = copy.deepcopy(node[key])
    return selection


def _select_path(source: Any, target: Any, tokens: List[str], pointer: str) -> None:
    for depth, token in enumerate(tokens):
        if isinstance(target, list):
            # already selected in full by an earlier pointer
            return

        if isinstance(source, list):
            if not token.isdigit() or int(token) >= len(source):
                raise SelectionError(
                    f'JSON pointer "{pointer}" does not match document.')
            key = int(token)
        elif isinstance(source, dict):
            if token not in source:
                raise SelectionError(
                    f'JSON pointer "{pointer}" does not match document.')
            key = token
        else:
            raise SelectionError(
                f'JSON pointer "{pointer}" does not match document.')

        value = source[key]
        if depth == len(tokens) - 1:
            target[key] = copy.deepcopy(value)
            return

        if key not in target:
            if isinstance(value, list):
                target[key] = _SparseArray()
            elif isinstance(value, dict):
                target[key] = _init_selection(value)
            else:
                raise SelectionError(
                    f'JSON pointer "{pointer}" does not match document.')

        source, target = value, target[key]


def _compact(value: Any) -> Any:
    if isinstance(value, _SparseArray):
        return [_compact(value[index]) for index in sorted(value)]
    if isinstance(value, dict):
        return {key: _compact(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_compact(item) for item in value]
    return value
