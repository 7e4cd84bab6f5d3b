"""Tests for the individual placeholder resolvers, driven through the engine."""

from __future__ import annotations

import pytest

from sqlforge.models.descriptors import EntityDescriptor, MethodDescriptor
from sqlforge.models.errors import ProcessingResult
from sqlforge.template.engine import TemplateEngine
from sqlforge.template.resolvers import RESOLVERS, PlaceholderKind, lookup_kind


def _render(engine: TemplateEngine, template: str, dialect: str = "postgres", **kwargs) -> str:
    result = engine.process(template, dialect=dialect, **kwargs)
    assert result.ok, result.errors
    return result.processed_sql


def _error_code(result: ProcessingResult) -> str:
    assert len(result.errors) == 1, result.errors
    return result.errors[0].code


class TestRegistry:
    def test_every_kind_has_a_resolver(self) -> None:
        assert set(RESOLVERS) == set(PlaceholderKind)

    def test_lookup_by_alias(self) -> None:
        assert lookup_kind("notin") is PlaceholderKind.NOT_IN
        assert lookup_kind("string_agg") is PlaceholderKind.GROUP_CONCAT
        assert lookup_kind("orderby") is PlaceholderKind.ORDERBY
        assert lookup_kind("bogus") is None


class TestTableAndColumns:
    def test_table_from_entity(self, engine: TemplateEngine, user_entity: EntityDescriptor) -> None:
        assert _render(engine, "{{table}}", entity=user_entity) == "user"
        assert _render(engine, "{{table:quoted}}", "sqlserver", entity=user_entity) == "[user]"

    def test_table_override(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{table OrderLines}}") == "order_lines"
        assert _render(engine, "{{table}}", table="dbo.AuditLog") == "dbo.audit_log"

    def test_table_missing(self, engine: TemplateEngine) -> None:
        assert _error_code(engine.process("{{table}}", dialect="mysql")) == "MISSING_ARGUMENT"

    def test_columns(self, engine: TemplateEngine, user_entity: EntityDescriptor) -> None:
        assert _render(engine, "{{columns}}", entity=user_entity) == (
            "id, user_name, email, balance, is_active, created_at"
        )
        assert _render(engine, "{{columns:auto}}", entity=user_entity) == (
            "user_name, email, balance, is_active, created_at"
        )

    def test_columns_exclude_quoted(
        self, engine: TemplateEngine, user_entity: EntityDescriptor
    ) -> None:
        sql = _render(
            engine, "{{columns --exclude CreatedAt --quoted}}", "sqlserver", entity=user_entity
        )
        assert sql == "[id], [user_name], [email], [balance], [is_active]"

    def test_columns_only(self, engine: TemplateEngine, user_entity: EntityDescriptor) -> None:
        assert _render(engine, "{{columns --only Id,UserName}}", entity=user_entity) == (
            "id, user_name"
        )

    def test_columns_exclude_and_only_conflict(
        self, engine: TemplateEngine, user_entity: EntityDescriptor
    ) -> None:
        result = engine.process(
            "{{columns --exclude Id --only Email}}", dialect="mysql", entity=user_entity
        )
        assert _error_code(result) == "CONFLICTING_OPTIONS"

    def test_unknown_field_warns(
        self, engine: TemplateEngine, user_entity: EntityDescriptor
    ) -> None:
        result = engine.process("{{columns --exclude Nope}}", dialect="mysql", entity=user_entity)
        assert result.ok
        assert [w.code for w in result.warnings] == ["UNKNOWN_FIELD"]

    def test_columns_without_entity(self, engine: TemplateEngine) -> None:
        result = engine.process("SELECT {{columns}} FROM t", dialect="mysql")
        assert result.processed_sql == "SELECT * FROM t"
        assert [w.code for w in result.warnings] == ["NO_ENTITY"]

    def test_columns_and_values_line_up(
        self, engine: TemplateEngine, user_entity: EntityDescriptor
    ) -> None:
        sql = _render(
            engine,
            "INSERT INTO {{table}} ({{columns:auto}}) VALUES ({{values:auto}})",
            "mysql",
            entity=user_entity,
        )
        columns_part, values_part = sql.split(" VALUES ")
        columns = columns_part.split("(", 1)[1].rstrip(")").split(", ")
        values = values_part.strip("()").split(", ")
        assert [v.lstrip("@") for v in values] == columns

    def test_values_from_method(self, engine: TemplateEngine, get_by_id: MethodDescriptor) -> None:
        assert _render(engine, "{{values}}", "oracle", method=get_by_id) == ":id"

    def test_set(self, engine: TemplateEngine, user_entity: EntityDescriptor) -> None:
        assert _render(engine, "{{set --only Email,IsActive}}", "mysql", entity=user_entity) == (
            "email = @email, is_active = @is_active"
        )
        sql = _render(engine, "{{set}}", "mysql", entity=user_entity)
        assert sql.startswith("user_name = @user_name, ")
        assert "id = @id" not in sql

    def test_wrap(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{wrap Order}}", "sqlserver") == "[Order]"
        assert _render(engine, "{{wrap:Order}}", "mysql") == "`Order`"


class TestWhere:
    def test_primary_key_default(
        self, engine: TemplateEngine, user_entity: EntityDescriptor
    ) -> None:
        assert _render(engine, "{{where}}", entity=user_entity) == 'WHERE "id" = @id'

    def test_column_variant_uses_method_parameter(self, engine: TemplateEngine) -> None:
        method = MethodDescriptor.model_validate(
            {"name": "ByEmail", "parameters": [{"name": "emailAddress"}]}
        )
        assert _render(engine, "{{where:EmailAddress}}", "mysql", method=method) == (
            "WHERE `email_address` = @emailAddress"
        )

    def test_auto_skips_paging_parameters(
        self, engine: TemplateEngine, search_method: MethodDescriptor
    ) -> None:
        assert _render(engine, "{{where:auto}}", method=search_method) == (
            'WHERE "min_price" = @minPrice AND "max_price" = @maxPrice'
        )

    def test_auto_without_parameters(self, engine: TemplateEngine) -> None:
        method = MethodDescriptor(name="ListAsync")
        assert _render(engine, "{{where:auto}}", method=method) == "WHERE 1=1"

    def test_auto_without_method(self, engine: TemplateEngine) -> None:
        assert _error_code(engine.process("{{where:auto}}", dialect="mysql")) == (
            "MISSING_ARGUMENT"
        )

    def test_fragment(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{where Status = @status AND Age > 18}}", "mysql") == (
            "WHERE Status = @status AND Age > 18"
        )


class TestOrderingAndPaging:
    def test_orderby_directions(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{orderby CreatedAt desc, UserName}}", "mysql") == (
            "ORDER BY created_at DESC, user_name ASC"
        )

    def test_orderby_default_descending(
        self, engine: TemplateEngine, user_entity: EntityDescriptor
    ) -> None:
        assert _render(engine, "{{orderby --desc}}", "mysql", entity=user_entity) == (
            "ORDER BY id DESC"
        )

    def test_orderby_quotes_only_on_request(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{orderby CreatedAt}}", "sqlserver") == "ORDER BY created_at ASC"
        assert _render(engine, "{{orderby CreatedAt desc --quoted}}", "sqlserver") == (
            "ORDER BY [created_at] DESC"
        )
        assert _render(engine, "{{orderby:quoted UserName}}", "postgres") == (
            'ORDER BY "user_name" ASC'
        )

    def test_limit_preset(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{limit:small}}", "mysql") == "LIMIT 10"
        assert _render(engine, "{{limit large}}", "mysql") == "LIMIT 100"

    def test_limit_from_method(
        self, engine: TemplateEngine, search_method: MethodDescriptor
    ) -> None:
        assert _render(engine, "{{limit}}", "sqlite", method=search_method) == "LIMIT @limit"

    @pytest.mark.parametrize(
        ("dialect", "expected"),
        [
            ("mysql", "LIMIT @limit OFFSET @offset"),
            ("sqlserver", "OFFSET @offset ROWS FETCH NEXT @limit ROWS ONLY"),
            ("oracle", "OFFSET :offset ROWS FETCH NEXT :limit ROWS ONLY"),
        ],
    )
    def test_limit_with_offset(
        self,
        engine: TemplateEngine,
        search_method: MethodDescriptor,
        dialect: str,
        expected: str,
    ) -> None:
        sql = _render(engine, "ORDER BY id {{limit --offset}}", dialect, method=search_method)
        assert sql == f"ORDER BY id {expected}"

    def test_separate_limit_and_offset_on_offset_fetch(self, engine: TemplateEngine) -> None:
        sql = _render(engine, "ORDER BY id {{offset 20}} {{limit 10}}", "db2")
        assert sql == "ORDER BY id OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY"


class TestConditions:
    def test_between_positional(
        self, engine: TemplateEngine, search_method: MethodDescriptor
    ) -> None:
        sql = _render(
            engine,
            "SELECT * FROM products WHERE price {{between @minPrice, @maxPrice}}",
            "mysql",
            method=search_method,
        )
        assert "BETWEEN @minPrice AND @maxPrice" in sql

    def test_between_pipe_form(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{between|min=@minPrice|max=@maxPrice}}") == (
            "BETWEEN @minPrice AND @maxPrice"
        )

    def test_between_with_column(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{between UnitPrice, 10, 20}}") == "unit_price BETWEEN 10 AND 20"

    def test_between_needs_two_bounds(self, engine: TemplateEngine) -> None:
        assert _error_code(engine.process("{{between @a}}", dialect="mysql")) == (
            "MISSING_ARGUMENT"
        )

    def test_in_lists(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{in @a, @b}}") == "IN (@a, @b)"
        assert _render(engine, "{{in Status, 'active', 'pending'}}") == (
            "status IN ('active', 'pending')"
        )
        assert _render(engine, "{{not_in|values=@a,@b}}") == "NOT IN (@a, @b)"

    def test_in_conflict(self, engine: TemplateEngine) -> None:
        assert _error_code(engine.process("{{in @x|values=@a}}", dialect="mysql")) == (
            "CONFLICTING_OPTIONS"
        )

    @pytest.mark.parametrize(
        ("template", "dialect", "expected"),
        [
            ("{{like @q}}", "mysql", "LIKE CONCAT('%', @q, '%')"),
            ("{{like @q --starts}}", "postgres", "LIKE @q || '%'"),
            ("{{like:Name @q --mode ends}}", "sqlserver", "name LIKE '%' + @q"),
            ("{{like Name, @q --exact}}", "sqlite", "name LIKE @q"),
        ],
    )
    def test_like_modes(
        self, engine: TemplateEngine, template: str, dialect: str, expected: str
    ) -> None:
        assert _render(engine, template, dialect) == expected

    def test_like_conflicting_modes(self, engine: TemplateEngine) -> None:
        result = engine.process("{{like @q --mode starts --ends}}", dialect="mysql")
        assert _error_code(result) == "CONFLICTING_OPTIONS"

    def test_null_tests(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{isnull DeletedAt}}") == "deleted_at IS NULL"
        assert _render(engine, "{{notnull:Email}}") == "email IS NOT NULL"


class TestFunctions:
    @pytest.mark.parametrize(
        ("dialect", "true_sql", "false_sql"),
        [("postgres", "true", "false"), ("mysql", "1", "0"), ("oracle", "1", "0")],
    )
    def test_booleans(
        self, engine: TemplateEngine, dialect: str, true_sql: str, false_sql: str
    ) -> None:
        assert _render(engine, "{{bool_true}} {{bool_false}}", dialect) == f"{true_sql} {false_sql}"

    def test_literal_swaps(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{today}}", "mysql") == "CURDATE()"
        assert _render(engine, "{{uuid}}", "sqlserver") == "NEWID()"
        assert _render(engine, "{{random}}", "postgres") == "RANDOM()"

    def test_aggregates(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{count}}") == "COUNT(*)"
        assert _render(engine, "{{count all}}") == "COUNT(*)"
        assert _render(engine, "{{count distinct UserId}}") == "COUNT(DISTINCT user_id)"
        assert _render(engine, "{{sum Amount --default 0}}") == "COALESCE(SUM(amount), 0)"
        assert _render(engine, "{{min:distinct Price}}") == "MIN(DISTINCT price)"

    def test_aggregate_errors(self, engine: TemplateEngine) -> None:
        assert _error_code(engine.process("{{count --distinct}}", dialect="mysql")) == (
            "INVALID_ARGUMENT"
        )
        assert _error_code(engine.process("{{sum}}", dialect="mysql")) == "MISSING_ARGUMENT"

    def test_coalesce_needs_two_arguments(self, engine: TemplateEngine) -> None:
        assert _error_code(engine.process("{{coalesce a}}", dialect="mysql")) == (
            "MISSING_ARGUMENT"
        )

    def test_ifnull_per_dialect(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{ifnull Nickname, 'n/a'}}", "sqlserver") == (
            "ISNULL(nickname, 'n/a')"
        )
        assert _render(engine, "{{ifnull Nickname, 'n/a'}}", "oracle") == "NVL(nickname, 'n/a')"

    def test_concat_per_dialect(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{concat FirstName, ' ', LastName}}", "mysql") == (
            "CONCAT(first_name, ' ', last_name)"
        )
        assert _render(engine, "{{concat FirstName, ' ', LastName}}", "sqlserver") == (
            "first_name + ' ' + last_name"
        )

    def test_round(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{round Price}}") == "ROUND(price, 0)"
        assert _render(engine, "{{round Price, 2}}") == "ROUND(price, 2)"

    def test_function_names_per_dialect(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{length Name}}", "sqlserver") == "LEN(name)"
        assert _render(engine, "{{ceiling Price}}", "sqlite") == "CEIL(price)"
        assert _render(engine, "{{substring Name, 1, 3}}", "oracle") == "SUBSTR(name, 1, 3)"
        assert _render(engine, "{{abs Delta}}", "mysql") == "ABS(delta)"

    def test_cast(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{cast Price, decimal}}", "sqlserver") == (
            "CAST(price AS DECIMAL(18,2))"
        )
        assert _render(engine, "{{cast Price, varchar(20)}}", "mysql") == (
            "CAST(price AS VARCHAR(20))"
        )
        assert _render(engine, "{{cast Id, int64}}", "oracle") == "CAST(id AS NUMBER(19))"

    def test_group_concat(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{group_concat Name}}", "mysql") == (
            "GROUP_CONCAT(name SEPARATOR ',')"
        )
        assert _render(engine, "{{group_concat Name, ' / '}}", "postgres") == (
            "STRING_AGG(name, ' / ')"
        )

    def test_group_concat_separator_breakout_rejected(self, engine: TemplateEngine) -> None:
        result = engine.process(r"{{group_concat name, '\'' OR 1=1 #'}}", dialect="mysql")
        assert _error_code(result) == "UNSAFE_FRAGMENT"

    def test_date_add(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{date_add CreatedAt, day, 7}}", "mysql") == (
            "DATE_ADD(created_at, INTERVAL 7 DAY)"
        )
        assert _render(engine, "{{date_add:days CreatedAt, @n}}", "postgres") == (
            "(created_at + @n * INTERVAL '1 day')"
        )

    def test_date_diff(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{date_diff day, StartAt, EndAt}}", "sqlserver") == (
            "DATEDIFF(day, start_at, end_at)"
        )

    def test_unknown_date_unit(self, engine: TemplateEngine) -> None:
        result = engine.process("{{date_add d, fortnight, 1}}", dialect="mysql")
        assert _error_code(result) == "INVALID_ARGUMENT"

    def test_distinct_and_union(self, engine: TemplateEngine) -> None:
        assert _render(engine, "SELECT {{distinct}} a") == "SELECT DISTINCT a"
        assert _render(engine, "{{union}}") == "UNION"
        assert _render(engine, "{{union all}}") == "UNION ALL"
        assert _render(engine, "{{union:all}}") == "UNION ALL"
        assert _error_code(engine.process("{{union foo}}", dialect="mysql")) == (
            "INVALID_ARGUMENT"
        )


class TestClauses:
    def test_join(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{join:left orders o ON o.user_id = u.id}}") == (
            "LEFT JOIN orders o ON o.user_id = u.id"
        )
        assert _render(engine, "{{join OrderLines --on order_lines.order_id = o.id}}") == (
            "INNER JOIN order_lines ON order_lines.order_id = o.id"
        )

    def test_join_fallback_warns(self, engine: TemplateEngine) -> None:
        result = engine.process("{{join:right orders o ON o.user_id = u.id}}", dialect="sqlite")
        assert result.processed_sql == "LEFT JOIN orders o ON o.user_id = u.id"
        assert [w.code for w in result.warnings] == ["DIALECT_FALLBACK"]

    def test_cross_join(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{join:cross regions r}}") == "CROSS JOIN regions r"
        result = engine.process("{{join:cross regions r ON r.id = 1}}", dialect="mysql")
        assert _error_code(result) == "INVALID_ARGUMENT"

    def test_join_needs_condition(self, engine: TemplateEngine) -> None:
        assert _error_code(engine.process("{{join orders o}}", dialect="mysql")) == (
            "MISSING_ARGUMENT"
        )

    def test_groupby(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{groupby CustomerId, Region}}") == "GROUP BY customer_id, region"

    def test_having(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{having:count|min=5}}") == "HAVING COUNT(*) >= 5"
        assert _render(engine, "{{having:sum Amount|max=@cap}}") == "HAVING SUM(amount) <= @cap"
        assert _render(engine, "{{having SUM(total) > 100}}") == "HAVING SUM(total) > 100"
        assert _render(engine, "{{having HAVING COUNT(*) > 1}}") == "HAVING COUNT(*) > 1"


class TestNative:
    def test_json(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{json Data, address.city}}", "mysql") == (
            "JSON_EXTRACT(data, '$.address.city')"
        )
        assert _render(engine, "{{json Data, address.city}}", "postgres") == (
            "data->'address'->'city'"
        )

    def test_json_path_rejected(self, engine: TemplateEngine) -> None:
        assert _error_code(engine.process("{{json data, a b}}", dialect="mysql")) == (
            "UNSAFE_FRAGMENT"
        )

    def test_array(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{array Tags, 0}}", "postgres") == "tags->0"
        assert _error_code(engine.process("{{array tags, x}}", dialect="mysql")) == (
            "INVALID_ARGUMENT"
        )

    def test_fulltext(self, engine: TemplateEngine) -> None:
        assert _render(engine, "{{fulltext Title, Body, @q}}", "mysql") == (
            "MATCH(title, body) AGAINST(@q IN NATURAL LANGUAGE MODE)"
        )
        assert _render(engine, "{{fulltext Title, widgets}}", "postgres") == (
            "to_tsvector(title) @@ to_tsquery('widgets')"
        )

    def test_fulltext_fallback_warns(self, engine: TemplateEngine) -> None:
        result = engine.process("{{fulltext Title, Body, @q}}", dialect="sqlite")
        assert result.processed_sql == "(title MATCH @q OR body MATCH @q)"
        assert [w.code for w in result.warnings] == ["DIALECT_FALLBACK"]

    @pytest.mark.parametrize("search", [r"\' OR 1=1 #", r"'\'' OR 1=1 #'"])
    def test_fulltext_term_breakout_rejected(self, engine: TemplateEngine, search: str) -> None:
        template = "SELECT * FROM posts WHERE {{fulltext title, " + search + "}}"
        assert _error_code(engine.process(template, dialect="mysql")) == "UNSAFE_FRAGMENT"


class TestStatements:
    def test_batch_insert_shape(
        self, engine: TemplateEngine, user_entity: EntityDescriptor
    ) -> None:
        result = engine.process("{{batch_insert --size 3}}", dialect="postgres", entity=user_entity)
        assert result.ok
        sql = result.processed_sql
        assert sql.startswith(
            'INSERT INTO "user" ("user_name", "email", "balance", "is_active", "created_at") '
            "VALUES (@user_name0, @email0, @balance0, @is_active0, @created_at0), ("
        )
        assert sql.endswith("@created_at2)")
        assert len(result.parameters) == 5 * 3

    def test_batch_insert_db2_markers(
        self, engine: TemplateEngine, user_entity: EntityDescriptor
    ) -> None:
        result = engine.process("{{batch_insert 2}}", dialect="db2", entity=user_entity)
        assert result.processed_sql.count("?") == 10
        assert result.parameters[:2] == ["user_name0", "email0"]

    def test_batch_insert_with_keys(
        self, engine: TemplateEngine, user_entity: EntityDescriptor
    ) -> None:
        sql = _render(engine, "{{batch_insert --size=1 --with-keys}}", "mysql", entity=user_entity)
        assert sql.startswith("INSERT INTO `user` (`id`, ")

    @pytest.mark.parametrize("size", ["0", "1001", "many"])
    def test_batch_insert_bad_size(
        self, engine: TemplateEngine, user_entity: EntityDescriptor, size: str
    ) -> None:
        result = engine.process(
            f"{{{{batch_insert --size {size}}}}}", dialect="mysql", entity=user_entity
        )
        assert _error_code(result) == "INVALID_ARGUMENT"

    def test_batch_insert_parameter_limit(
        self, engine: TemplateEngine, user_entity: EntityDescriptor
    ) -> None:
        result = engine.process(
            "{{batch_insert --size 500}}", dialect="sqlserver", entity=user_entity
        )
        assert result.ok
        assert [w.code for w in result.warnings] == ["PARAMETER_LIMIT"]

    @pytest.mark.parametrize(
        ("dialect", "fragment"),
        [
            ("mysql", "ON DUPLICATE KEY UPDATE `user_name` = VALUES(`user_name`)"),
            ("postgres", 'ON CONFLICT ("id") DO UPDATE SET "user_name" = EXCLUDED."user_name"'),
            ("sqlite", "ON CONFLICT ([id]) DO UPDATE SET [user_name] = excluded.[user_name]"),
            ("sqlserver", "MERGE INTO [user] AS target USING (VALUES (@id, @user_name"),
            ("oracle", 'MERGE INTO "user" target USING (SELECT :id AS "id", :user_name'),
            ("db2", 'MERGE INTO "user" AS target USING (VALUES (?, ?, ?, ?, ?, ?))'),
        ],
    )
    def test_upsert_per_strategy(
        self,
        engine: TemplateEngine,
        user_entity: EntityDescriptor,
        dialect: str,
        fragment: str,
    ) -> None:
        sql = _render(engine, "{{upsert}}", dialect, entity=user_entity)
        assert fragment in sql

    def test_upsert_never_updates_keys(
        self, engine: TemplateEngine, user_entity: EntityDescriptor
    ) -> None:
        sql = _render(engine, "{{upsert}}", "mysql", entity=user_entity)
        assert "`id` = VALUES(`id`)" not in sql
        sql = _render(engine, "{{upsert --key Email}}", "postgres", entity=user_entity)
        assert 'ON CONFLICT ("email")' in sql
        assert '"email" = EXCLUDED."email"' not in sql
        assert '"id" = EXCLUDED."id"' in sql

    def test_upsert_key_must_be_inserted(
        self, engine: TemplateEngine, user_entity: EntityDescriptor
    ) -> None:
        result = engine.process(
            "{{upsert --key Email --exclude Email}}", dialect="mysql", entity=user_entity
        )
        assert _error_code(result) == "INVALID_ARGUMENT"
        result = engine.process("{{upsert --key Nope}}", dialect="mysql", entity=user_entity)
        assert _error_code(result) == "INVALID_ARGUMENT"

    def test_upsert_without_updates_warns(
        self, engine: TemplateEngine, user_entity: EntityDescriptor
    ) -> None:
        result = engine.process("{{upsert --only Id}}", dialect="mysql", entity=user_entity)
        assert result.processed_sql.endswith("ON DUPLICATE KEY UPDATE `id` = `id`")
        assert [w.code for w in result.warnings] == ["EMPTY_UPDATE"]

    def test_upsert_needs_entity(self, engine: TemplateEngine) -> None:
        assert _error_code(engine.process("{{upsert}}", dialect="mysql", table="t")) == (
            "MISSING_ARGUMENT"
        )

    def test_insert_returning(
        self, engine: TemplateEngine, user_entity: EntityDescriptor
    ) -> None:
        only = "{{insert_returning --only UserName,Email}}"
        assert _render(engine, only, "postgres", entity=user_entity) == (
            'INSERT INTO "user" ("user_name", "email") VALUES (@user_name, @email) RETURNING "id"'
        )
        assert _render(engine, only, "oracle", entity=user_entity) == (
            'INSERT INTO "user" ("user_name", "email") VALUES (:user_name, :email) '
            'RETURNING "id" INTO :id'
        )
        assert _render(engine, only, "sqlserver", entity=user_entity) == (
            "INSERT INTO [user] ([user_name], [email]) OUTPUT INSERTED.[id] "
            "VALUES (@user_name, @email)"
        )
