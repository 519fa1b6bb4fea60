from collections.abc import Mapping

from pyramid_jsonapi_serialiser.http_query import (
    QuerySelection,
    longest_includes,
)
from pyramid_jsonapi_serialiser.registry import (
    SerialiseContext,
    get_value,
    is_many,
    record_id,
)
from pyramid_jsonapi_serialiser.resource import (
    Doc,
    ResourceIndicator,
)


class MissingIdentifier(ValueError):
    """A record to serialise has no (or an empty) id."""

    def __init__(self, type_token, record):
        super().__init__(type_token, record)
        self.type_token = type_token

    def __str__(self):
        return 'Record of type {!r} has no id.'.format(self.type_token)


class Serialiser:
    """Build JSON:API documents from records.

    Arguments:
        registry (SchemaRegistry): registered resource schemas.
        selection (QuerySelection): sparse fieldsets and includes requested.
    """

    def __init__(self, registry, selection=None) -> None:
        self.registry = registry
        self.selection = selection or QuerySelection()

    def allowed(self, schema, name):
        return self.selection.allows(schema.type, name)

    def attribute_names(self, schema, item):
        if schema.attributes is not None:
            names = schema.attributes
        elif isinstance(item, Mapping):
            names = item.keys()
        else:
            names = ()
        return [
            name for name in names
            if name != schema.id_attribute
            and name not in schema.relationships
            and self.allowed(schema, name)
        ]

    @staticmethod
    def is_record(value, schema):
        return isinstance(value, Mapping) or hasattr(value, schema.id_attribute)

    @staticmethod
    def identifier(schema, item):
        rid = record_id(item, schema.id_attribute)
        if rid is None or rid == '':
            raise MissingIdentifier(schema.type, item)
        return ResourceIndicator(schema.type, str(rid))

    def related_identifier(self, schema, value):
        if self.is_record(value, schema):
            return self.identifier(schema, value)
        # Not populated: value is the bare id of the related record.
        return ResourceIndicator(schema.type, str(value))

    @staticmethod
    def related_items(item, rel):
        value = get_value(item, rel.alias)
        if value is None:
            return []
        if rel.to_many and not isinstance(value, Mapping):
            return list(value)
        return [value]

    def serialise_item(self, schema, item, context, linked=()):
        ser = self.identifier(schema, item).to_dict()
        ser['attributes'] = {
            name: get_value(item, name)
            for name in self.attribute_names(schema, item)
        }
        ser['relationships'] = {}
        for alias, rel in schema.relationships.items():
            if not self.allowed(schema, alias):
                continue
            ser['relationships'][alias] = rel_dict = {
                'links': rel.links(item, context),
            }
            if alias in linked:
                tgt_schema = self.registry.lookup(rel.target_type)
                ris = [
                    self.related_identifier(tgt_schema, rel_item).to_dict()
                    for rel_item in self.related_items(item, rel)
                ]
                if rel.to_many:
                    rel_dict['data'] = ris
                else:
                    rel_dict['data'] = ris[0] if ris else None
        ser['links'] = {'self': schema.self_link(item)}
        return ser

    def include(self, schema, item, include_list, included_dict):
        """Gather related items along include_list into included_dict.

        included_dict maps ResourceIndicator -> (schema, item, linked) where
        linked is the set of relationship names which need linkage data.
        """
        if not include_list:
            return
        rel = schema.relationships.get(include_list[0])
        if rel is None:
            # Reported by bad_include_paths().
            return
        rel_schema = self.registry.lookup(rel.target_type)
        rel_include_list = include_list[1:]
        for rel_item in self.related_items(item, rel):
            if not self.is_record(rel_item, rel_schema):
                continue
            ref = self.identifier(rel_schema, rel_item)
            _, _, linked = included_dict.setdefault(ref, (rel_schema, rel_item, set()))
            if rel_include_list:
                linked.add(rel_include_list[0])
                self.include(rel_schema, rel_item, rel_include_list, included_dict)

    def include_paths(self):
        tree = self.selection.include_tree
        longest = longest_includes('.'.join(path) for path in tree)
        return [path for path in tree if path in longest]

    def bad_include_paths(self, type_token):
        """Set of requested include paths with no corresponding relationship."""
        bad = set()
        for path in self.selection.include_tree:
            curname = []
            curschema = self.registry.lookup(type_token)
            tainted = False
            for name in path:
                curname.append(name)
                if tainted:
                    bad.add('.'.join(curname))
                elif name in curschema.relationships:
                    curschema = self.registry.lookup(
                        curschema.relationships[name].target_type
                    )
                else:
                    tainted = True
                    bad.add('.'.join(curname))
        return bad

    def serialise(self, type_token, data, context=None):
        """Serialise a record, an iterable of records or None.

        Raises:
            SchemaNotRegistered: type_token (or a type reached through an
                include path) has no schema.
            MissingIdentifier: a record has no id.
        """
        schema = self.registry.lookup(type_token)
        context = context or SerialiseContext()
        many = is_many(data)
        if many:
            my_data = list(data)
        elif data is None:
            my_data = []
        else:
            my_data = [data]

        paths = self.include_paths()
        linked = {path[0] for path in paths}
        ser = Doc()
        ser_data = [
            self.serialise_item(schema, item, context, linked) for item in my_data
        ]
        if many:
            ser['data'] = ser_data
        else:
            ser['data'] = ser_data[0] if ser_data else None

        if paths:
            included_dict = {}
            for item in my_data:
                for inc in paths:
                    self.include(schema, item, inc, included_dict)
            primary = {self.identifier(schema, item) for item in my_data}
            ser['included'] = [
                self.serialise_item(
                    inc_schema, inc_item,
                    context.for_type(inc_schema.type, schema.type), inc_linked
                )
                for ref, (inc_schema, inc_item, inc_linked) in included_dict.items()
                if ref not in primary
            ]

        links = schema.top_level_links(my_data if many else data, context)
        if links:
            ser.update_child('links', links)
        meta = schema.top_level_meta(context)
        if meta:
            ser.update_child('meta', meta)
        return ser


def serialise(registry, type_token, data, context=None, selection=None):
    """Shortcut for ``Serialiser(registry, selection).serialise(...)``."""
    return Serialiser(registry, selection).serialise(type_token, data, context)
