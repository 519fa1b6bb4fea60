"""Schema registry: per resource type link and relationship rules."""

import logging
from collections.abc import (
    Iterable,
    Mapping,
)
from dataclasses import dataclass, field, replace
from functools import partial
from types import MappingProxyType
from typing import Callable, Optional, Tuple


class SchemaNotRegistered(KeyError):
    """Serialisation was requested for a type with no registered schema."""

    def __init__(self, type_token):
        super().__init__(type_token)
        self.type_token = type_token

    def __str__(self):
        return 'No schema registered for resource type {!r}.'.format(self.type_token)


class RegistryNotReady(RuntimeError):
    """The registry was used before model metadata was loaded."""


def get_value(record, name, default=None):
    """Read a field from a mapping or an object."""
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def record_id(record, id_attribute='id'):
    return get_value(record, id_attribute)


def is_many(data):
    """True for collections of records: any iterable except mappings and strings."""
    return isinstance(data, Iterable) and not isinstance(data, (Mapping, str, bytes))


@dataclass(frozen=True)
class SerialiseContext:
    """Per request data handed in by the populate step.

    Attributes:
        counts: relationship alias -> record id -> count, for the primary
            data.
        total: total number of records available, if known.
        counts_by_type: type token -> counts, for included resources. Ids
            are only unique within a type so included resources of another
            type never see the primary counts.
    """
    counts: Mapping = field(default_factory=dict)
    total: Optional[int] = None
    counts_by_type: Mapping = field(default_factory=dict)

    def for_type(self, type_token, primary_type):
        """Context to serialise resources of type_token with."""
        if type_token in self.counts_by_type:
            return replace(self, counts=self.counts_by_type[type_token])
        if type_token == primary_type:
            return self
        return replace(self, counts={})


def relationship_count(counts, alias, rid):
    """Count for ``alias`` on record ``rid``; 0 when absent."""
    by_id = (counts or {}).get(alias) or {}
    count = by_id.get(str(rid))
    if count is None:
        count = by_id.get(rid, 0)
    return count or 0


def related_links(record, context=None, *, alias, collection, id_attribute, links):
    """Links object for one relationship of one record."""
    rid = record_id(record, id_attribute)
    counts = context.counts if context is not None else {}
    return {
        'related': {
            'href': links.resource_link(collection, rid, alias),
            'meta': {
                'count': relationship_count(counts, alias, rid),
            },
        },
    }


@dataclass(frozen=True)
class RelationshipDescriptor:
    alias: str
    target_type: str
    link_builder: Callable
    to_many: bool = False

    def links(self, record, context=None):
        return self.link_builder(record, context)


def relationship_descriptor(association, target_type, collection, id_attribute, links):
    """Build the descriptor for one association of a model.

    Arguments:
        association (AssociationInfo): the association.
        target_type (str): type token of the associated model.
        collection (str): collection name of the *owning* model.
        id_attribute (str): id attribute of the owning model.
        links (ResourceLinkGenerator): link generator.
    """
    return RelationshipDescriptor(
        alias=association.alias,
        target_type=target_type,
        to_many=association.to_many,
        link_builder=partial(
            related_links,
            alias=association.alias,
            collection=collection,
            id_attribute=id_attribute,
            links=links,
        ),
    )


def default_top_level_meta(context=None):
    total = context.total if context is not None else None
    return {'total': total} if total is not None else {}


def collection_self_links(data, context=None, *, collection, id_attribute, links):
    if data is None or is_many(data):
        return {'self': links.resource_link(collection)}
    return {'self': links.resource_link(collection, record_id(data, id_attribute))}


def resource_self_link(record, *, collection, id_attribute, links):
    return links.resource_link(collection, record_id(record, id_attribute))


@dataclass(frozen=True)
class ResourceSchema:
    type: str
    collection: str
    self_link: Callable
    relationships: Mapping = field(default_factory=lambda: MappingProxyType({}))
    top_level_meta: Callable = default_top_level_meta
    top_level_links: Callable = lambda data, context=None: {}
    attributes: Optional[Tuple[str, ...]] = None
    id_attribute: str = 'id'


def resource_schema(model_info, types_by_name, links):
    """Build a ResourceSchema from a ModelInfo.

    Arguments:
        model_info (ModelInfo): the model.
        types_by_name (dict): model name -> type token for every model being
            registered.
        links (ResourceLinkGenerator): link generator.
    """
    link_args = {
        'collection': model_info.collection,
        'id_attribute': model_info.id_attribute,
        'links': links,
    }
    relationships = {}
    for assoc in model_info.associations:
        try:
            target_type = types_by_name[assoc.target]
        except KeyError:
            raise SchemaNotRegistered(assoc.target) from None
        relationships[assoc.alias] = relationship_descriptor(
            assoc, target_type, model_info.collection,
            model_info.id_attribute, links
        )
    return ResourceSchema(
        type=model_info.type,
        collection=model_info.collection,
        self_link=partial(resource_self_link, **link_args),
        relationships=MappingProxyType(relationships),
        top_level_links=partial(collection_self_links, **link_args),
        attributes=model_info.attributes,
        id_attribute=model_info.id_attribute,
    )


class SchemaRegistry:
    """Map of resource type token to ResourceSchema."""

    def __init__(self):
        self._schemas = {}

    def register(self, type_token, schema):
        """Store schema for type_token, replacing any previous entry."""
        self._schemas[type_token] = schema

    def lookup(self, type_token):
        try:
            return self._schemas[type_token]
        except KeyError:
            raise SchemaNotRegistered(type_token) from None

    def by_collection(self, collection):
        """Schema whose collection (URL) name is ``collection``, or None."""
        for schema in self._schemas.values():
            if schema.collection == collection:
                return schema
        return None

    def check_targets(self):
        """Raise SchemaNotRegistered for any dangling relationship target."""
        for schema in self._schemas.values():
            for rel in schema.relationships.values():
                if rel.target_type not in self._schemas:
                    raise SchemaNotRegistered(rel.target_type)

    def __contains__(self, type_token):
        return type_token in self._schemas

    def __iter__(self):
        return iter(self._schemas)

    def __len__(self):
        return len(self._schemas)


def build_registry(model_infos, links):
    """Build a complete registry from ModelInfo objects in one step."""
    model_infos = list(model_infos)
    types_by_name = {mi.name: mi.type for mi in model_infos}
    registry = SchemaRegistry()
    for model_info in model_infos:
        registry.register(
            model_info.type,
            resource_schema(model_info, types_by_name, links)
        )
    registry.check_targets()
    logging.info(
        'Registered %d resource types: %s',
        len(registry), ', '.join(sorted(registry))
    )
    return registry
