"""Tests for the ORM, schema and migration generators."""

import pytest

from codegen.laravel import generate_laravel
from codegen.mongoose import generate_mongoose, schema_options
from codegen.prisma import generate_prisma
from codegen.registry import GENERATORS, Target, generate, targets_for
from codegen.sequelize import SequelizeMode, generate_sequelize
from codegen.sqlalchemy_export import generate_sqlalchemy
from codegen.typeorm import generate_typeorm
from model.types import DatabaseFamily, Entity, Field, SchemaInput


def entity(entity_id: str, label: str, fields: list[Field]) -> Entity:
    """Build an entity in the main database."""
    return {
        "id": entity_id,
        "databaseId": "db-main",
        "data": {"label": label, "fields": fields},
    }


@pytest.fixture(name="relational_schema")
def fixture_relational_schema() -> SchemaInput:
    """Provide Users and Posts linked by an explicit foreign key."""
    return {
        "collections": [
            entity(
                "1",
                "Users",
                [
                    {
                        "id": "u1",
                        "name": "id",
                        "type": "INT",
                        "primaryKey": True,
                        "autoIncrement": True,
                    },
                    {"id": "u2", "name": "email", "type": "VARCHAR", "unique": True},
                ],
            ),
            entity(
                "2",
                "Posts",
                [
                    {
                        "id": "p1",
                        "name": "id",
                        "type": "INT",
                        "primaryKey": True,
                        "autoIncrement": True,
                    },
                    {
                        "id": "p2",
                        "name": "author_id",
                        "type": "INT",
                        "foreignKey": True,
                        "referencesTable": "Users",
                        "referencesColumnId": "u1",
                        "onDelete": "cascade",
                    },
                ],
            ),
        ],
    }


@pytest.fixture(name="document_schema")
def fixture_document_schema() -> SchemaInput:
    """Provide Users with a nested address and Posts referencing Users."""
    return {
        "collections": [
            entity(
                "1",
                "Users",
                [
                    {"id": "f1", "name": "_id", "type": "ObjectId", "key": True},
                    {
                        "id": "f2",
                        "name": "email",
                        "type": "String",
                        "required": True,
                        "trim": True,
                        "minLength": "3",
                        "enumValues": ["a", "b"],
                    },
                    {
                        "id": "f3",
                        "name": "address",
                        "type": "Object",
                        "children": [
                            {"id": "f4", "name": "city", "type": "String"},
                            {"id": "f5", "name": "zip", "type": "Number", "min": "0"},
                        ],
                    },
                    {
                        "id": "f6",
                        "name": "tags",
                        "type": "Array",
                        "children": [{"id": "f7", "name": "label", "type": "String"}],
                    },
                ],
            ),
            entity(
                "2",
                "Posts",
                [
                    {"id": "f8", "name": "_id", "type": "ObjectId", "key": True},
                    {
                        "id": "f9",
                        "name": "author_id",
                        "type": "ObjectId",
                        "ref": "users",
                        "required": True,
                    },
                    {"id": "f10", "name": "published", "type": "Date", "defaultDateMode": "now"},
                ],
            ),
        ],
    }


def test_mongoose_models(document_schema: SchemaInput) -> None:
    """Test Mongoose schemas, nesting, references and exports."""
    document_schema["collections"][0]["data"]["timestampsEnabled"] = True
    code = generate_mongoose(document_schema)

    assert code.startswith("const mongoose = require('mongoose');\n")
    assert "  _id:" not in code
    assert (
        '  email: { type: String, required: true, trim: true, minLength: 3, enum: ["a", "b"] },'
        in code
    )
    assert "  address: {\n    city: { type: String },\n    zip: { type: Number, min: 0 },\n  },\n" in code
    assert "  tags: [{\n    label: { type: String },\n  }],\n" in code
    assert '  author_id: { type: Schema.Types.ObjectId, ref: "Users", required: true },' in code
    assert "  published: { type: Date, default: Date.now }," in code
    assert "}, {\n  timestamps: true\n});" in code
    assert "const Posts = mongoose.model('Posts', PostsSchema);" in code
    assert code.endswith("module.exports = { Users, Posts };\n")


def test_mongoose_schema_options() -> None:
    """Test tri-state and structured schema options."""
    options = schema_options(
        {
            "timestampsEnabled": True,
            "createdAtName": "created",
            "schemaStrictMode": "throw",
            "schemaMinimizeMode": "false",
            "schemaAutoIndexMode": "",
            "schemaVersionKeyMode": "disable",
            "schemaCappedEnabled": True,
            "schemaCappedSize": "1024",
            "schemaCollationLocale": "en",
            "schemaCollationStrength": "9",
        },
    )
    assert options == {
        "timestamps": {"createdAt": "created"},
        "strict": "throw",
        "minimize": False,
        "versionKey": False,
        "capped": {"size": 1024},
        "collation": {"locale": "en"},
    }


def test_prisma_relations(relational_schema: SchemaInput) -> None:
    """Test both sides of a Prisma relation share one name."""
    code = generate_prisma(relational_schema, DatabaseFamily.POSTGRESQL)

    assert 'provider = "postgresql"' in code
    assert "  id Int @id @default(autoincrement())\n" in code
    assert "  email String @unique\n" in code
    assert "  author_id Int\n" in code
    assert (
        '  users Users @relation("PostsUsersAuthorId", fields: [author_id], '
        "references: [id], onDelete: Cascade)\n"
    ) in code
    assert '  posts Posts[] @relation("PostsUsersAuthorId")\n' in code
    assert '  @@map("users")\n}' in code


def test_prisma_inverse_name_avoids_fields(relational_schema: SchemaInput) -> None:
    """Test that a back-reference never collides with an existing field."""
    users = relational_schema["collections"][0]["data"]["fields"]
    users.append({"id": "u3", "name": "posts", "type": "INT"})
    code = generate_prisma(relational_schema, DatabaseFamily.MYSQL)

    assert "  posts Int\n" in code
    assert '  posts2 Posts[] @relation("PostsUsersAuthorId")\n' in code


def test_prisma_mongodb_ids(document_schema: SchemaInput) -> None:
    """Test ObjectId keys on the mongodb provider."""
    code = generate_prisma(document_schema, DatabaseFamily.MONGODB)

    assert 'provider = "mongodb"' in code
    assert '  id String @id @default(auto()) @map("_id") @db.ObjectId\n' in code
    assert "  author_id String @db.ObjectId\n" in code
    assert "  users Users @relation(" in code


def test_typeorm_entities(relational_schema: SchemaInput) -> None:
    """Test TypeORM entity files and relation decorators."""
    code = generate_typeorm(relational_schema, DatabaseFamily.POSTGRESQL)

    assert "// entities/Users.ts\n" in code
    assert (
        "import { Entity, Column, PrimaryGeneratedColumn, OneToMany } from 'typeorm';\n"
        "import { Posts } from './Posts';\n"
    ) in code
    assert "@Entity({ name: 'users' })\nexport class Users {\n" in code
    assert "  @PrimaryGeneratedColumn({ name: 'id' })\n  id: number;\n" in code
    assert "  @Column({ name: 'email', type: 'varchar', unique: true })\n  email: string;\n" in code
    assert (
        "  @ManyToOne(() => Users, (users) => users.posts, "
        "{ onDelete: 'CASCADE', onUpdate: 'NO ACTION' })\n"
        "  @JoinColumn({ name: 'author_id', referencedColumnName: 'id' })\n"
        "  users: Users;\n"
    ) in code
    assert "  @OneToMany(() => Posts, (posts) => posts.users)\n  posts: Posts[];\n" in code
    assert "  authorId: number;\n" in code


def test_sequelize_init(relational_schema: SchemaInput) -> None:
    """Test the single initializer layout."""
    code = generate_sequelize(relational_schema, DatabaseFamily.MYSQL)

    assert "export function initSequelizeModels(sequelize) {\n" in code
    assert '  const Users = sequelize.define("Users", {\n' in code
    assert (
        "      type: DataTypes.INTEGER,\n"
        '      field: "id",\n'
        "      primaryKey: true,\n"
        "      autoIncrement: true\n"
    ) in code
    assert "      type: DataTypes.STRING(255),\n" in code
    assert (
        '  Posts.belongsTo(Users, { foreignKey: "author_id", targetKey: "id", '
        'as: "users", onDelete: "CASCADE" });\n'
    ) in code
    assert (
        '  Users.hasMany(Posts, { foreignKey: "author_id", sourceKey: "id", as: "posts" });\n'
    ) in code
    assert "  return {\n    Users,\n    Posts\n  };\n}" in code


def test_sequelize_per_model(relational_schema: SchemaInput) -> None:
    """Test one file per model plus an index module."""
    code = generate_sequelize(relational_schema, mode=SequelizeMode.PER_MODEL)

    assert "// models/Users.js\n" in code
    assert "export default function defineUsers(sequelize) {\n" in code
    assert "  return Users;\n}" in code
    assert "// models/index.js\n" in code
    assert "import definePosts from './Posts.js';\n" in code
    assert "  const Posts = definePosts(sequelize);\n" in code


def test_sequelize_unknown_mode_falls_back(relational_schema: SchemaInput) -> None:
    """Test that unknown layouts produce the single initializer."""
    assert generate_sequelize(relational_schema, mode="bogus") == generate_sequelize(
        relational_schema,
    )


def test_laravel_migrations(relational_schema: SchemaInput) -> None:
    """Test create-table migrations followed by one foreign key migration."""
    code = generate_laravel(relational_schema)

    assert "// 0001_01_01_000001_create_users_table.php\n" in code
    assert "// 0001_01_01_000002_create_posts_table.php\n" in code
    assert "            $table->id();\n" in code
    assert "            $table->string('email', 255)->unique();\n" in code
    assert "            $table->integer('author_id');\n" in code
    assert "Schema::dropIfExists('posts');" in code

    foreign_keys = code[code.index("// 0001_01_01_000003_add_foreign_keys.php") :]
    assert (
        "            $table->foreign('author_id', 'fk_posts_author_id_1')"
        "->references('id')->on('users')->onDelete('cascade');\n"
    ) in foreign_keys
    assert "            $table->dropForeign('fk_posts_author_id_1');\n" in foreign_keys


def test_laravel_date_prefix(relational_schema: SchemaInput) -> None:
    """Test a custom migration date prefix."""
    code = generate_laravel(relational_schema, date_prefix="2024_05_01")
    assert "// 2024_05_01_000001_create_users_table.php\n" in code


def test_sqlalchemy_models(relational_schema: SchemaInput) -> None:
    """Test SQLAlchemy declarative classes and relationships."""
    code = generate_sqlalchemy(relational_schema)

    assert "from sqlalchemy import ForeignKey, Integer, String\n" in code
    assert "class Base(DeclarativeBase):\n" in code
    assert "class Users(Base):\n" in code
    assert '    __tablename__ = "users"\n' in code
    assert (
        '    id: Mapped[int] = mapped_column("id", Integer, primary_key=True, autoincrement=True)\n'
    ) in code
    assert '    email: Mapped[str] = mapped_column("email", String, unique=True)\n' in code
    assert (
        '    author_id: Mapped[int] = mapped_column("author_id", Integer, '
        'ForeignKey("users.id", ondelete="CASCADE"))\n'
    ) in code
    assert (
        '    users: Mapped[Users] = relationship(back_populates="posts", '
        "foreign_keys=[author_id])\n"
    ) in code
    assert (
        '    posts: Mapped[list[Posts]] = relationship(back_populates="users", '
        'foreign_keys="[Posts.author_id]")\n'
    ) in code


def test_sqlalchemy_table_without_key() -> None:
    """Test that entities without a primary key become plain tables."""
    schema: SchemaInput = {
        "collections": [entity("1", "Audit Log", [{"id": "f1", "name": "message", "type": "TEXT"}])],
    }
    code = generate_sqlalchemy(schema)

    assert "AuditLog = Table(\n" in code
    assert '    Column("message", Text, nullable=False),\n' in code
    assert "from sqlalchemy import Column, Table, Text\n" in code


@pytest.mark.parametrize("target", list(Target))
def test_every_target_is_deterministic(target: Target, relational_schema: SchemaInput) -> None:
    """Test that every target yields identical output for identical input."""
    first = generate(target, relational_schema, DatabaseFamily.POSTGRESQL)
    assert first
    assert first == generate(target, relational_schema, DatabaseFamily.POSTGRESQL)


@pytest.mark.parametrize("target", list(Target))
def test_every_target_handles_empty_schema(target: Target) -> None:
    """Test that every target yields nothing for an empty project."""
    assert generate(target, {"collections": []}) == ""


def test_unknown_target() -> None:
    """Test that unknown targets raise a ValueError."""
    with pytest.raises(ValueError, match="Unknown target: cobol"):
        generate("cobol", {"collections": []})


def test_registry_covers_every_target() -> None:
    """Test the generator table and per-family target lists."""
    assert set(GENERATORS) == set(Target)
    assert targets_for(DatabaseFamily.MONGODB) == [Target.MONGOOSE, Target.PRISMA]
    assert Target.MONGOOSE not in targets_for(DatabaseFamily.MYSQL)
    assert Target.SQL in targets_for(DatabaseFamily.POSTGRESQL)


def malformed_schema() -> SchemaInput:
    """Build entities whose optional attributes hold values of the wrong type."""
    return {
        "collections": [
            entity(
                "1",
                "Odd Things",
                [
                    {"id": "o1", "name": "id", "type": "INT", "primaryKey": True},
                    {"id": "o2", "name": "status", "type": "ENUM", "enumValues": 5},  # type: ignore[typeddict-item]
                    {"id": "o3", "name": "flag", "type": "Boolean", "selectMode": ["x"]},  # type: ignore[typeddict-item]
                    {"id": "o4", "name": "size", "type": "String", "minLength": {"a": 1}},  # type: ignore[typeddict-item]
                    {"id": "o5", "name": "code", "type": "INT", "defaultValue": "007"},
                    {"id": "o6", "name": "label", "type": "VARCHAR", "typeParams": ["x"]},  # type: ignore[typeddict-item]
                    {"id": ["o7"], "name": None, "type": 7, "children": 3},  # type: ignore[typeddict-item]
                    {"id": "o8", "name": "ratio", "type": "Number", "defaultValue": float("inf")},
                ],
            ),
        ],
    }


@pytest.mark.parametrize("target", list(Target))
@pytest.mark.parametrize("family", list(DatabaseFamily))
def test_every_target_tolerates_malformed_attributes(
    target: Target,
    family: DatabaseFamily,
) -> None:
    """Test that wrongly typed optional attributes never abort generation."""
    code = generate(target, malformed_schema(), family)

    assert isinstance(code, str)
    assert code
    assert "007" not in code


def test_sqlalchemy_output_compiles() -> None:
    """Test that defaults and enum values render as legal Python."""
    schema: SchemaInput = {
        "collections": [
            entity(
                "1",
                "Codes",
                [
                    {"id": "c1", "name": "id", "type": "INT", "primaryKey": True},
                    {"id": "c2", "name": "code", "type": "INT", "defaultValue": "007"},
                    {"id": "c3", "name": "kind", "type": "ENUM", "enumValues": ['say "hi"', "b"]},
                    {"id": "c4", "name": "rate", "type": "DECIMAL", "defaultValue": ".50"},
                ],
            ),
        ],
    }
    code = generate_sqlalchemy(schema)

    compile(code, "models.py", "exec")
    assert "default=7)" in code
    assert "default=0.5)" in code
    assert r'Enum("say \"hi\"", "b")' in code


def test_laravel_enum_without_values() -> None:
    """Test that an enum column with no values falls back to a string column."""
    schema: SchemaInput = {
        "collections": [entity("1", "Tags", [{"id": "t1", "name": "kind", "type": "ENUM"}])],
    }
    code = generate_laravel(schema)

    assert "$table->string('kind')" in code
    assert "$table->enum(" not in code
