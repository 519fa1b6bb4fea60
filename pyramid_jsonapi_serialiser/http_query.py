"""Parse presentation query parameters: sparse fieldsets and includes."""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Tuple
from urllib.parse import parse_qsl

FIELDS_KEY_RE = re.compile(r'^fields\[([A-Za-z0-9_-]+)\]$')
NAME_RE = re.compile(r'^[A-Za-z0-9_-]+$')


def param_items(raw):
    """(key, value) pairs from a query string, MultiDict or mapping.

    All values for repeated keys are returned.
    """
    if raw is None:
        return []
    if isinstance(raw, bytes):
        raw = raw.decode('utf-8')
    if isinstance(raw, str):
        return parse_qsl(raw.lstrip('?'), keep_blank_values=True)
    if hasattr(raw, 'items') and hasattr(raw, 'getall'):
        # webob MultiDict (request.params): items() yields repeated keys.
        return list(raw.items())
    if isinstance(raw, Mapping):
        items = []
        for key, val in raw.items():
            if isinstance(val, (list, tuple)):
                items.extend((key, v) for v in val)
            else:
                items.append((key, val))
        return items
    return list(raw)


def split_names(value):
    """Split a comma separated value, dropping malformed names."""
    names = []
    for name in value.split(','):
        name = name.strip()
        if not name:
            continue
        if not NAME_RE.match(name):
            logging.debug('Dropping malformed name %r', name)
            continue
        names.append(name)
    return names


def parse_fields(raw):
    """Parse ``fields[<type>]=<names>`` parameters.

    Returns:
        dict: type token -> frozenset of field names. A type with no entry is
        unrestricted. An empty value restricts the type to no fields.
    """
    fields = {}
    for key, val in param_items(raw):
        if not key.startswith('fields'):
            continue
        match = FIELDS_KEY_RE.match(key)
        if not match:
            logging.debug('Dropping malformed sparse fieldset parameter %r', key)
            continue
        type_ = match.group(1)
        names = split_names(val)
        if not names and val.strip():
            # Nothing usable: treat as if the parameter had not been sent.
            logging.debug('Dropping sparse fieldset %r=%r', key, val)
            continue
        fields[type_] = fields.get(type_, frozenset()) | frozenset(names)
    return fields


def parse_include(raw):
    """Parse ``include`` parameters into relationship paths.

    Returns:
        tuple: ordered, de-duplicated paths, each a tuple of relationship
        names, e.g. ``(('author',), ('comments', 'author'))``.
    """
    paths = []
    for key, val in param_items(raw):
        if key != 'include':
            continue
        for inc in val.split(','):
            inc = inc.strip()
            if not inc:
                continue
            segments = tuple(inc.split('.'))
            if not all(NAME_RE.match(seg) for seg in segments):
                logging.debug('Dropping malformed include path %r', inc)
                continue
            if segments not in paths:
                paths.append(segments)
    return tuple(paths)


@dataclass(frozen=True)
class QuerySelection:
    """Sparse fieldsets and include paths requested by a client."""
    fields_by_type: Mapping = field(default_factory=lambda: MappingProxyType({}))
    include_tree: Tuple[Tuple[str, ...], ...] = ()

    def fields_for(self, type_token) -> FrozenSet[str]:
        """Allowed field names for type_token, or None for no restriction."""
        return self.fields_by_type.get(type_token)

    def allows(self, type_token, name):
        allowed = self.fields_for(type_token)
        return allowed is None or name in allowed

    def include_names(self):
        """Set of all dotted include names, including intermediate ones."""
        return {
            '.'.join(chain) for path in self.include_tree
            for chain in include_chain('.'.join(path))
        }


def parse_selection(raw):
    """Build a QuerySelection from a query string, MultiDict or mapping."""
    return QuerySelection(
        fields_by_type=MappingProxyType(parse_fields(raw)),
        include_tree=parse_include(raw),
    )


def include_chain(include):
    chain = []
    names = include.split('.')
    for i in range(len(names)):
        chain.append(tuple(names[:i + 1]))
    return chain


def longest_includes(includes):
    seen = set()
    longest = set()
    for inc in includes:
        inc_chain = include_chain(inc)
        if inc_chain[-1] in seen:
            continue
        seen |= set(inc_chain)
        longest -= set(inc_chain[:-1])
        longest.add(inc_chain[-1])
    return longest
