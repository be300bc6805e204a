"""Tests for the Record model, query helpers and table rendering."""

import io

import pytest

from keybox.vault import RECORD_HEADER, Record, SerializationError, Table, write_table
from keybox.vault.query import resolve_id, select, sort_by_id, word_matcher


def _encrypted(record_id="abc", category="mail"):
    return Record(
        id=record_id,
        category=category,
        plain_account="alice",
        plain_password="secret",
        cipher_account=b"\x01\x02",
        cipher_password=b"\x03",
        account_iv=b"\x00" * 16,
        password_iv=b"\xff" * 16,
        created_at=100,
        last_updated_at=200,
    )


# ── Serialization ───────────────────────────────────────────────────


class TestRecordSerialization:
    def test_to_dict_has_no_plaintext(self):
        d = _encrypted().to_dict()
        assert set(d) == {
            "id", "category", "account", "password",
            "account_iv", "password_iv", "created_at", "last_updated_at",
        }
        assert "alice" not in repr(d)
        assert "secret" not in repr(d)

    def test_from_dict_restores_persisted_fields(self):
        rec = _encrypted()
        loaded = Record.from_dict(rec.to_dict())
        assert loaded.id == "abc"
        assert loaded.category == "mail"
        assert loaded.cipher_account == b"\x01\x02"
        assert loaded.cipher_password == b"\x03"
        assert loaded.account_iv == b"\x00" * 16
        assert loaded.password_iv == b"\xff" * 16
        assert (loaded.created_at, loaded.last_updated_at) == (100, 200)
        assert loaded.plain_account == ""

    def test_missing_id_raises(self):
        with pytest.raises(SerializationError):
            Record.from_dict({"category": "x"})

    def test_bad_base64_raises(self):
        d = _encrypted().to_dict()
        d["account_iv"] = "!!not base64!!"
        with pytest.raises(SerializationError):
            Record.from_dict(d)

    def test_non_object_raises(self):
        with pytest.raises(SerializationError):
            Record.from_dict(["abc"])

    def test_repr_hides_plaintext(self):
        assert "secret" not in repr(_encrypted())


# ── Migrate / match ─────────────────────────────────────────────────


class TestMigrate:
    def test_non_empty_fields_replace(self):
        rec = _encrypted()
        rec.migrate(Record(category="work", plain_password="new-secret"))
        assert rec.category == "work"
        assert rec.plain_account == "alice"
        assert rec.plain_password == "new-secret"

    def test_keeps_identity_and_creation_time(self):
        rec = _encrypted()
        rec.migrate(Record(id="other", created_at=5, plain_account="bob"))
        assert rec.id == "abc"
        assert rec.created_at == 100

    def test_changed_value_drops_its_iv(self):
        rec = _encrypted()
        rec.migrate(Record(plain_password="changed"))
        assert rec.password_iv == b""
        assert rec.account_iv == b"\x00" * 16

    def test_unchanged_value_keeps_iv(self):
        rec = _encrypted()
        rec.migrate(Record(plain_account="alice"))
        assert rec.account_iv == b"\x00" * 16


class TestMatch:
    def test_case_insensitive_substring(self):
        rec = Record(id="1", category="Email", plain_account="Alice@Example.com")
        assert rec.match("mail")
        assert rec.match("EXAMPLE")
        assert rec.match("")
        assert not rec.match("bob")

    def test_password_is_not_searched(self):
        rec = Record(id="1", category="x", plain_account="y", plain_password="needle")
        assert not rec.match("needle")


# ── Query helpers ───────────────────────────────────────────────────


class TestQuery:
    def test_sort_by_id(self):
        recs = [Record(id=i) for i in ("b2", "a1", "c3")]
        assert [r.id for r in sort_by_id(recs)] == ["a1", "b2", "c3"]

    def test_select_sorts_results(self):
        recs = [Record(id="z", category="mail"), Record(id="a", category="Mail")]
        assert [r.id for r in select(recs, word_matcher("mail"))] == ["a", "z"]

    def test_resolve_exact_wins_over_prefix(self):
        records = {i: Record(id=i) for i in ("ab", "abc", "abd")}
        assert [r.id for r in resolve_id(records, "ab")] == ["ab"]

    def test_resolve_prefix(self):
        records = {i: Record(id=i) for i in ("ab34", "ab12", "cd56")}
        assert [r.id for r in resolve_id(records, "ab")] == ["ab12", "ab34"]
        assert resolve_id(records, "zz") == []


# ── Table ───────────────────────────────────────────────────────────


class TestTable:
    def test_from_records_with_header(self):
        table = Table.from_records([_encrypted("a"), _encrypted("b")])
        assert table.header == RECORD_HEADER
        assert table.row_count == 2
        assert table.col_count == len(RECORD_HEADER)
        assert table.get(1, 0) == "b"
        assert table.column(2) == ["alice", "alice"]

    def test_no_header(self):
        table = Table.from_records([_encrypted()], no_header=True)
        assert table.header is None
        assert table.all_rows() == table.rows

    def test_empty_table(self):
        table = Table.from_records([], no_header=True)
        assert table.col_count == 0
        out = io.StringIO()
        write_table(out, table)
        assert out.getvalue() == ""

    def test_write_table_aligns_columns(self):
        table = Table(rows=[["a", "long-value"], ["bbbb", "x"]], header=["K", "V"])
        out = io.StringIO()
        write_table(out, table)
        assert out.getvalue().splitlines() == [
            "K     V",
            "a     long-value",
            "bbbb  x",
        ]

    def test_write_table_replaces_undecodable_bytes(self):
        garbled = b"\xff\xfe-ok".decode("utf-8", "surrogateescape")
        table = Table(rows=[["id1", garbled]], header=["ID", "ACCOUNT"])
        out = io.StringIO()
        write_table(out, table)
        text = out.getvalue()
        assert "\ufffd\ufffd-ok" in text
        text.encode("utf-8")
