"""Lookup table of code generation targets."""

from __future__ import annotations

from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Any, Protocol

from codegen.laravel import generate_laravel
from codegen.mongoose import generate_mongoose
from codegen.prisma import generate_prisma
from codegen.sequelize import generate_sequelize
from codegen.sql import generate_sql
from codegen.sqlalchemy_export import generate_sqlalchemy
from codegen.typeorm import generate_typeorm
from model.types import DatabaseFamily

if TYPE_CHECKING:
    from model.types import SchemaInput

logger = getLogger(__name__)


class Target(StrEnum):
    """Supported output dialects."""

    SQL = "sql"
    MONGOOSE = "mongoose"
    PRISMA = "prisma"
    TYPEORM = "typeorm"
    SEQUELIZE = "sequelize"
    LARAVEL = "laravel"
    SQLALCHEMY = "sqlalchemy"


class Generator(Protocol):
    """A pure function from schema and family to generated code."""

    def __call__(
        self,
        schema: SchemaInput,
        family: DatabaseFamily,
        /,
        **options: Any,
    ) -> str: ...


GENERATORS: dict[Target, Generator] = {
    Target.SQL: generate_sql,
    Target.MONGOOSE: generate_mongoose,
    Target.PRISMA: generate_prisma,
    Target.TYPEORM: generate_typeorm,
    Target.SEQUELIZE: generate_sequelize,
    Target.LARAVEL: generate_laravel,
    Target.SQLALCHEMY: generate_sqlalchemy,
}

RELATIONAL = (DatabaseFamily.MYSQL, DatabaseFamily.POSTGRESQL)
TARGET_FAMILIES: dict[Target, tuple[DatabaseFamily, ...]] = {
    Target.SQL: RELATIONAL,
    Target.MONGOOSE: (DatabaseFamily.MONGODB,),
    Target.PRISMA: tuple(DatabaseFamily),
    Target.TYPEORM: RELATIONAL,
    Target.SEQUELIZE: RELATIONAL,
    Target.LARAVEL: RELATIONAL,
    Target.SQLALCHEMY: RELATIONAL,
}


def targets_for(family: DatabaseFamily) -> list[Target]:
    """List the targets that make sense for a family, in declaration order."""
    return [target for target in Target if family in TARGET_FAMILIES[target]]


def generate(
    target: Target | str,
    schema: SchemaInput,
    family: DatabaseFamily = DatabaseFamily.MYSQL,
    **options: Any,
) -> str:
    """Run the generator registered for ``target``."""
    try:
        generator = GENERATORS[Target(target)]
    except ValueError as err:
        msg = f"Unknown target: {target}"
        raise ValueError(msg) from err

    logger.debug("Generating %s for %s", target, family)
    return generator(schema, family, **options)
