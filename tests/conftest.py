"""Shared fixtures for the vin_verify test suite."""

import pytest

from vin_verify.config import VerifyConfig, reset_config

# Reference export layout: identifier in column I (index 8)
REFERENCE_HEADERS = [
    "No", "登録番号", "車名", "型式", "原動機の型式",
    "初度登録年月", "所有者名", "使用者名", "車台番号", "備考",
]


def build_csv(headers, rows, title="輸出抹消仮登録一覧", meta="作成日,2024-10-01"):
    """Render preamble + header + rows as CSV text."""
    lines = [title, meta, ",".join(headers)]
    lines.extend(",".join(row) for row in rows)
    return "\n".join(lines) + "\n"


def reference_row(no, chassis, name="トヨタ"):
    return [str(no), f"品川 500 あ {no}", name, "DBA-ABC", "2ZR", "2020年1月", "株式会社A", "株式会社B", chassis, ""]


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config():
    return VerifyConfig()


@pytest.fixture
def reference_csv():
    return build_csv(REFERENCE_HEADERS, [
        reference_row(1, "AAZH20-1002549"),
        reference_row(2, "HNT32-117910", name="日産"),
        reference_row(3, "ZVW30 - 5551234"),
    ])
