"""Value objects describing models, and their construction from sqlalchemy."""

import types
from dataclasses import dataclass
from typing import Optional, Tuple

import sqlalchemy
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import DeclarativeMeta
from sqlalchemy.orm.interfaces import (
    MANYTOMANY,
    ONETOMANY,
)

from pyramid_jsonapi_serialiser.identifiers import (
    pluralise,
    type_token,
)


@dataclass(frozen=True)
class AssociationInfo:
    """One association of a model.

    Attributes:
        alias: name of the field exposed to clients.
        target: model name of the associated class.
        to_many: True for collection associations.
    """
    alias: str
    target: str
    to_many: bool = False


@dataclass(frozen=True)
class ModelInfo:
    """Everything the schema registry needs to know about a model."""
    name: str
    attributes: Optional[Tuple[str, ...]] = None
    associations: Tuple[AssociationInfo, ...] = ()
    id_attribute: str = 'id'
    type: str = None
    collection: str = None

    def __post_init__(self):
        # Frozen: fill in derived names via object.__setattr__.
        if self.type is None:
            object.__setattr__(self, 'type', type_token(self.name))
        if self.collection is None:
            object.__setattr__(self, 'collection', pluralise(self.type))


def model_options(model):
    """Per model overrides from a ``__jsonapi__`` dict on the model class."""
    return getattr(model, '__jsonapi__', {})


def model_list_from(models):
    """Build a list of declarative models from a module or iterable."""
    if not isinstance(models, types.ModuleType):
        return list(models)
    model_list = []
    for attr in models.__dict__.values():
        if isinstance(attr, DeclarativeMeta):
            try:
                sqlalchemy.inspect(attr).primary_key
            except sqlalchemy.exc.NoInspectionAvailable:
                # Trying to inspect the declarative_base() raises this
                # exception. We don't want to add it to the API.
                continue
            model_list.append(attr)
    return model_list


def model_name(model):
    return model_options(model).get('name', model.__name__)


def model_info_from_sqlalchemy(model, expose_foreign_keys=False):
    """Inspect a sqlalchemy model class and return a ModelInfo.

    Arguments:
        model: a declarative model class.

    Keyword Args:
        expose_foreign_keys (bool): include foreign key columns in attributes.
    """
    options = model_options(model)
    mapper = sqlalchemy.inspect(model).mapper
    keycols = mapper.primary_key
    # Only deal with one primary key column.
    if len(keycols) != 1:
        raise ValueError(
            'Model {} must have exactly one primary key column.'.format(
                model.__name__
            )
        )
    key_name = mapper.get_property_by_column(keycols[0]).key
    expose_fields = options.get('expose_fields')

    atts = []
    for key, col in mapper.columns.items():
        if key == key_name:
            continue
        if col.foreign_keys and not expose_foreign_keys:
            continue
        if expose_fields is None or key in expose_fields:
            atts.append(key)
    for key, item in mapper.all_orm_descriptors.items():
        if isinstance(item, hybrid_property):
            if expose_fields is None or item.__name__ in expose_fields:
                atts.append(item.__name__)

    associations = []
    for key, rel in mapper.relationships.items():
        if expose_fields is None or key in expose_fields:
            associations.append(
                AssociationInfo(
                    alias=key,
                    target=model_name(rel.mapper.class_),
                    to_many=rel.direction in (ONETOMANY, MANYTOMANY),
                )
            )

    return ModelInfo(
        name=model_name(model),
        attributes=tuple(atts),
        associations=tuple(associations),
        id_attribute=key_name,
        type=options.get('type'),
        collection=options.get('collection_name'),
    )


def model_infos_from_sqlalchemy(models, expose_foreign_keys=False):
    """ModelInfo objects for a models module or iterable of models."""
    return [
        model_info_from_sqlalchemy(model, expose_foreign_keys)
        for model in model_list_from(models)
    ]
