"""Tests for CLI output helpers."""

import json

from riakrest.cli._output import print_document, print_object, print_table


def test_print_table_aligns_columns(capsys):
    print_table(["bucket", "key"], [["people", "remy"], ["pets", "rex"]])
    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "bucket  key ",
        "------  ----",
        "people  remy",
        "pets    rex ",
    ]


def test_print_table_no_rows(capsys):
    print_table(["bucket", "key"], [])
    assert capsys.readouterr().out == ""


def test_print_object_text(capsys):
    print_object({"key": "remy", "deleted": True})
    assert capsys.readouterr().out == "key: remy\ndeleted: True\n"


def test_print_object_json(capsys):
    print_object({"key": "remy"}, json_mode=True)
    assert json.loads(capsys.readouterr().out) == {"key": "remy"}


def test_print_document_yaml(capsys):
    print_document({"schema": {"allowed_fields": ["name"]}}, "yaml")
    assert capsys.readouterr().out == "schema:\n  allowed_fields:\n  - name\n"
