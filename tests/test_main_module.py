"""Tests for ``python -m paper_match``."""

from __future__ import annotations

import runpy
import sys
from unittest.mock import patch

import pytest


def test_module_entry_exits_with_main_status() -> None:
    sys.modules.pop("paper_match.__main__", None)
    with patch("paper_match.cli.main", return_value=3) as mock_main:
        with pytest.raises(SystemExit) as exc_info:
            runpy.run_module("paper_match", run_name="__main__")

    assert exc_info.value.code == 3
    mock_main.assert_called_once_with()
