"""Unit tests for the command line interface."""

import asyncio
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from invoicing.cli import build_parser, main


@pytest.fixture
def invoice_file(tmp_path: Path, make_invoice_data: Callable[..., dict[str, Any]]) -> Path:
    path = tmp_path / "invoice.json"
    path.write_text(json.dumps(make_invoice_data()), encoding="utf-8")
    return path


def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_parser_rejects_unknown_ledger(invoice_file: Path) -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["translate", "sage", str(invoice_file)])


def test_validate(invoice_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["validate", str(invoice_file)]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output == {"is_valid": True, "errors": [], "warnings": []}


def test_validate_duplicate(invoice_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["validate", str(invoice_file), "--existing", "INV-001"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["is_valid"] is False


def test_translate(invoice_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["translate", "quickbooks", str(invoice_file), "--vendor-id", "56"])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["VendorRef"] == {"value": "56"}
    assert payload["Line"][-1]["Description"] == "Tax"


def test_translate_missing_routing(invoice_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["translate", "wave", str(invoice_file), "--vendor-id", "56"]) == 1
    assert capsys.readouterr().out == ""


def test_malformed_invoice_file(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text('{"vendor_name": "Acme"}', encoding="utf-8")

    assert main(["validate", str(path)]) == 1


@pytest.fixture
def document_file(tmp_path: Path) -> Path:
    path = tmp_path / "document.txt"
    path.write_text("INVOICE INV-001 from Acme Corp", encoding="utf-8")
    return path


@pytest.fixture
def fake_provider(make_invoice_data: Callable[..., dict[str, Any]]) -> MagicMock:
    provider = MagicMock()
    provider.provider_name = "fake"
    provider.complete_json = AsyncMock(return_value=json.dumps(make_invoice_data()))
    provider.aclose = AsyncMock()
    return provider


def test_extract_builds_provider_outside_loop_and_closes_it(
    document_file: Path, fake_provider: MagicMock, capsys: pytest.CaptureFixture[str]
) -> None:
    def create(settings: Any) -> MagicMock:
        with pytest.raises(RuntimeError):
            asyncio.get_running_loop()
        return fake_provider

    with patch("invoicing.cli.create_completion_provider", side_effect=create) as factory:
        assert main(["extract", str(document_file)]) == 0

    factory.assert_called_once()
    fake_provider.aclose.assert_awaited_once()
    output = json.loads(capsys.readouterr().out)
    assert output["invoice"]["invoice_number"] == "INV-001"
    assert "verification" not in output


def test_extract_with_verify(
    document_file: Path,
    fake_provider: MagicMock,
    make_invoice_data: Callable[..., dict[str, Any]],
    capsys: pytest.CaptureFixture[str],
) -> None:
    fake_provider.complete_json.side_effect = [
        json.dumps(make_invoice_data(invoice_number="INV-00l")),
        json.dumps(
            {
                "status": "CORRECTED",
                "corrections": ["invoice_number"],
                "data": make_invoice_data(),
            }
        ),
    ]

    with patch("invoicing.cli.create_completion_provider", return_value=fake_provider):
        assert main(["extract", str(document_file), "--verify"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["invoice"]["invoice_number"] == "INV-00l"
    assert output["verification"]["status"] == "CORRECTED"
    assert output["verification"]["invoice"]["invoice_number"] == "INV-001"


def test_provider_closed_when_command_fails(
    document_file: Path, fake_provider: MagicMock
) -> None:
    fake_provider.complete_json.return_value = "not json"

    with patch("invoicing.cli.create_completion_provider", return_value=fake_provider):
        assert main(["extract", str(document_file)]) == 1

    fake_provider.aclose.assert_awaited_once()


def test_offline_commands_build_no_provider(invoice_file: Path) -> None:
    with patch("invoicing.cli.create_completion_provider") as factory:
        assert main(["validate", str(invoice_file)]) == 0

    factory.assert_not_called()
