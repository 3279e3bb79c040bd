"""Tests for the doubled-quote repair helper."""

from dbcrypt.maintenance import doubled_quote_repair_sql, quote_identifier, repair_doubled_quotes


def test_quote_identifier_doubles_embedded_quotes():
    assert quote_identifier("templates") == '"templates"'
    assert quote_identifier('we"ird') == '"we""ird"'


def test_repair_sql_handles_all_three_shapes():
    sql = doubled_quote_repair_sql("templates", "name")
    assert sql.startswith('UPDATE "templates" SET "name" = CASE ')
    assert """WHEN "name" LIKE '""%""' THEN SUBSTR("name", 3, LENGTH("name") - 4)""" in sql
    assert """WHEN "name" LIKE '""%' THEN SUBSTR("name", 3)""" in sql
    assert """WHEN "name" LIKE '%""' THEN SUBSTR("name", 1, LENGTH("name") - 2)""" in sql
    assert sql.endswith("""WHERE "name" LIKE '%""%';""")


def test_repair_runs_through_the_live_session(tool, fake_engine, tmp_path):
    tool.init(tmp_path / "app.db", "secret")
    assert repair_doubled_quotes(tool, "templates", "name") == []
    assert fake_engine.statements == [doubled_quote_repair_sql("templates", "name")]
