"""Code generation from the schema graph for several target dialects."""

from codegen.laravel import generate_laravel
from codegen.mongoose import generate_mongoose
from codegen.naming import (
    Casing,
    camel_case,
    label_key,
    pascal_case,
    snake_case,
    to_identifier,
    unique_name,
)
from codegen.prisma import generate_prisma
from codegen.registry import GENERATORS, Generator, Target, generate, targets_for
from codegen.relations import (
    EntityMeta,
    ResolvedReference,
    build_entity_metas,
    index_labels,
    reference_of,
    resolve,
)
from codegen.sequelize import SequelizeMode, generate_sequelize
from codegen.sql import generate_sql
from codegen.sqlalchemy_export import generate_sqlalchemy
from codegen.typeorm import generate_typeorm

__all__ = [
    "GENERATORS",
    "Casing",
    "EntityMeta",
    "Generator",
    "ResolvedReference",
    "SequelizeMode",
    "Target",
    "build_entity_metas",
    "camel_case",
    "generate",
    "generate_laravel",
    "generate_mongoose",
    "generate_prisma",
    "generate_sequelize",
    "generate_sql",
    "generate_sqlalchemy",
    "generate_typeorm",
    "index_labels",
    "label_key",
    "pascal_case",
    "reference_of",
    "resolve",
    "snake_case",
    "targets_for",
    "to_identifier",
    "unique_name",
]
