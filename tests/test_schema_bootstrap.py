from pathlib import Path

from src.lab_attendance.lab_attendance.database.bootstrap import _iter_sql_statements, _strip_create_db_and_use

SCHEMA = Path(__file__).resolve().parents[1] / "database" / "schema.sql"


def test_schema_splits_into_table_statements():
    sql = _strip_create_db_and_use(SCHEMA.read_text(encoding="utf-8"))

    statements = list(_iter_sql_statements(sql))

    assert len(statements) == 12
    assert all(s.startswith("CREATE TABLE IF NOT EXISTS") for s in statements)
    assert any("uq_freeze_member_month" in s for s in statements)
    assert any("uq_salary_member_month" in s for s in statements)


def test_splitter_keeps_semicolons_inside_quotes():
    sql = "INSERT INTO t VALUES ('a;b');\n-- comment; here\nSELECT 1;"

    assert list(_iter_sql_statements(sql)) == ["INSERT INTO t VALUES ('a;b')", "SELECT 1"]
