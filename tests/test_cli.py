"""Tests for the command-line front end."""

from __future__ import annotations

import asyncio
import json
import logging
import logging.handlers
from pathlib import Path
from unittest.mock import patch

import pytest

from paper_match.cli import _configure_logging, _default_storage, main
from paper_match.config import AppConfig
from paper_match.genres import GenreRegistry
from paper_match.services.catalog_service import SearchDegraded, SearchOk
from paper_match.services.interfaces import AppServices
from paper_match.services.translation_service import TranslationService
from paper_match.storage import SAVED_PAPERS_KEY, JsonFileStore, MemoryStore, papers_from_json
from paper_match.store import NO_RESULTS_MESSAGE, OFFLINE_MESSAGE


@pytest.fixture
def run_cli(memory_store, fake_catalog):
    """Run ``main`` against in-memory storage and a fake catalog."""

    def _run(*argv: str, config: AppConfig | None = None) -> int:
        return main(
            list(argv),
            load_config_fn=lambda: config or AppConfig(),
            storage_factory=lambda _config, _ephemeral: memory_store,
            services_factory=lambda _config, _client: AppServices(
                catalog=fake_catalog, translation=TranslationService()
            ),
            configure_logging_fn=lambda _debug, _verbose: None,
        )

    return _run


def _saved_ids(storage: MemoryStore) -> list[str]:
    raw = storage.read(SAVED_PAPERS_KEY)
    return [] if raw is None else [p.id for p in papers_from_json(raw)]


class TestGenresCommand:
    def test_list(self, run_cli, capsys) -> None:
        assert run_cli("genres", "list") == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 10
        assert lines[0].startswith("[on ] default-ai-machine-learning")

    def test_add_then_query(self, run_cli, capsys, memory_store) -> None:
        assert run_cli("genres", "add", "Software", "cat:cs.SE") == 0
        capsys.readouterr()

        assert run_cli("genres", "query") == 0

        assert capsys.readouterr().out.strip().endswith(" OR cat:cs.SE")
        assert GenreRegistry(memory_store).genres[-1].name == "Software"

    def test_add_blank_name_is_validation_error(self, run_cli, capsys) -> None:
        assert run_cli("genres", "add", "  ", "cat:cs.SE") == 2
        assert "Could not add the genre." in capsys.readouterr().err

    def test_remove_builtin_fails(self, run_cli, capsys) -> None:
        assert run_cli("genres", "remove", "default-robotics") == 1
        assert "built-in" in capsys.readouterr().err

    def test_toggle(self, run_cli, capsys, memory_store) -> None:
        assert run_cli("genres", "toggle", "default-robotics") == 0
        assert "Robotics: disabled" in capsys.readouterr().out
        assert GenreRegistry(memory_store).get("default-robotics").is_enabled is False

    def test_toggle_unknown(self, run_cli, capsys) -> None:
        assert run_cli("genres", "toggle", "nope") == 1
        assert "genres list" in capsys.readouterr().err


class TestSearchCommand:
    def test_default_search_uses_enabled_genres(self, run_cli, fake_catalog, memory_store):
        run_cli("search")
        assert fake_catalog.queries == [(GenreRegistry(memory_store).compose_query(), 20)]

    def test_raw_query_and_keyword(self, run_cli, fake_catalog) -> None:
        run_cli("search", "cat:cs.RO")
        run_cli("search", "--keyword", "graph  transformers")
        assert [q for q, _ in fake_catalog.queries] == ["cat:cs.RO", "all:graph transformers"]

    def test_max_results_from_config(self, run_cli, fake_catalog) -> None:
        run_cli("search", "q", config=AppConfig(max_results=7))
        assert fake_catalog.queries == [("q", 7)]

    @pytest.mark.parametrize(("raw", "expected"), [("5", 5), ("500", 100)])
    def test_max_results_flag_overrides_config(
        self, run_cli, fake_catalog, raw: str, expected: int
    ) -> None:
        run_cli("search", "q", "--max-results", raw, config=AppConfig(max_results=7))
        assert fake_catalog.queries == [("q", expected)]

    def test_prints_results(self, run_cli, fake_catalog, make_paper, capsys) -> None:
        fake_catalog.outcomes["q"] = SearchOk(papers=[make_paper("a", title="Alpha")])

        assert run_cli("search", "q") == 0

        out = capsys.readouterr().out
        assert "1 paper" in out
        assert "[a] Alpha" in out

    def test_empty_message(self, run_cli, capsys) -> None:
        run_cli("search", "q")
        assert NO_RESULTS_MESSAGE in capsys.readouterr().out

    def test_degraded_message(self, run_cli, fake_catalog, make_paper, capsys) -> None:
        fake_catalog.outcomes["q"] = SearchDegraded(papers=[make_paper("s")], reason="down")
        run_cli("search", "q")
        assert OFFLINE_MESSAGE in capsys.readouterr().out

    def test_like_saves_from_results(self, run_cli, fake_catalog, make_paper, memory_store):
        fake_catalog.outcomes["q"] = SearchOk(papers=[make_paper("a"), make_paper("b")])

        assert run_cli("search", "q", "--like", "b", "--like", "a") == 0

        assert _saved_ids(memory_store) == ["b", "a"]

    def test_like_twice_is_reported(self, run_cli, fake_catalog, make_paper, capsys):
        fake_catalog.outcomes["q"] = SearchOk(papers=[make_paper("a")])
        run_cli("search", "q", "--like", "a")
        capsys.readouterr()

        run_cli("search", "q", "--like", "a")

        assert "Already saved [a]" in capsys.readouterr().out

    def test_like_unknown_id(self, run_cli, capsys, memory_store) -> None:
        assert run_cli("search", "q", "--like", "zzz") == 1
        assert "not in the current results" in capsys.readouterr().err
        assert _saved_ids(memory_store) == []

    def test_blank_keyword_is_validation_error(self, run_cli, fake_catalog) -> None:
        assert run_cli("search", "--keyword", "   ") == 2
        assert fake_catalog.queries == []

    def test_surprise(self, run_cli, fake_catalog, make_paper, memory_store) -> None:
        fake_catalog.surprise_outcome = SearchOk(papers=[make_paper("r")])

        assert run_cli("surprise", "--like", "r") == 0

        assert fake_catalog.queries == [("surprise", 15)]
        assert _saved_ids(memory_store) == ["r"]


class TestSavedCommand:
    @pytest.fixture(autouse=True)
    def _seed(self, run_cli, fake_catalog, make_paper, capsys) -> None:
        fake_catalog.outcomes["seed"] = SearchOk(
            papers=[
                make_paper("a", title="Zebra Finches", authors=["Ann"]),
                make_paper("b", title="Neural Network Pruning", authors=["Ben"]),
            ]
        )
        run_cli("search", "seed", "--like", "a", "--like", "b")
        capsys.readouterr()

    def test_list(self, run_cli, capsys) -> None:
        assert run_cli("saved", "list", "--sort", "title") == 0
        out = capsys.readouterr().out
        assert out.index("[b]") < out.index("[a]")
        assert "2 papers" in out

    def test_list_filter(self, run_cli, capsys) -> None:
        run_cli("saved", "list", "--filter", "zebra")
        out = capsys.readouterr().out
        assert "[a]" in out
        assert "[b]" not in out

    def test_list_filter_without_match(self, run_cli, capsys) -> None:
        run_cli("saved", "list", "--filter", "qq")
        assert "No saved papers match the filter" in capsys.readouterr().out

    def test_read_and_unread(self, run_cli, memory_store) -> None:
        assert run_cli("saved", "read", "a") == 0
        assert papers_from_json(memory_store.read(SAVED_PAPERS_KEY))[0].is_read is True

        assert run_cli("saved", "read", "a", "--unread") == 0
        assert papers_from_json(memory_store.read(SAVED_PAPERS_KEY))[0].is_read is False

    def test_remove(self, run_cli, memory_store) -> None:
        assert run_cli("saved", "remove", "a") == 0
        assert _saved_ids(memory_store) == ["b"]

    def test_remove_unknown(self, run_cli, capsys) -> None:
        assert run_cli("saved", "remove", "zzz") == 1
        assert "saved list" in capsys.readouterr().err

    def test_translate_uses_fallback_and_persists(self, run_cli, capsys, memory_store):
        assert run_cli("translate", "b") == 0

        out = capsys.readouterr().out
        assert out.startswith("[翻訳] ニューラルネットワーク")
        stored = papers_from_json(memory_store.read(SAVED_PAPERS_KEY))
        assert stored[1].translated_title.startswith("[翻訳] ")

    def test_translate_unknown(self, run_cli, capsys) -> None:
        assert run_cli("translate", "zzz") == 1
        assert "search --like" in capsys.readouterr().err


def test_saved_list_empty(run_cli, capsys) -> None:
    assert run_cli("saved", "list") == 0
    assert "No saved papers" in capsys.readouterr().out


def test_missing_command_exits() -> None:
    with pytest.raises(SystemExit):
        main([])


class TestDefaultStorage:
    def test_ephemeral(self) -> None:
        assert isinstance(_default_storage(AppConfig(), ephemeral=True), MemoryStore)

    def test_configured_directory(self, tmp_path: Path) -> None:
        storage = _default_storage(AppConfig(data_dir=str(tmp_path)), ephemeral=False)
        assert isinstance(storage, JsonFileStore)
        assert storage.directory == tmp_path


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _restore_logging(self):
        handlers = list(logging.root.handlers)
        level = logging.root.level
        yield
        for handler in logging.root.handlers:
            if handler not in handlers:
                handler.close()
        logging.root.handlers = handlers
        logging.root.setLevel(level)
        logging.disable(logging.NOTSET)

    def test_silent_by_default(self) -> None:
        _configure_logging(debug=False)
        assert logging.root.manager.disable == logging.CRITICAL

    def test_verbose_logs_to_stderr(self) -> None:
        _configure_logging(debug=False, verbose=True)
        assert logging.root.level == logging.INFO
        assert any(
            type(h) is logging.StreamHandler and h.level == logging.INFO
            for h in logging.root.handlers
        )

    def test_debug_writes_rotating_file(self, tmp_path: Path) -> None:
        with patch("paper_match.cli.user_config_dir", return_value=str(tmp_path)):
            _configure_logging(debug=True)

        assert logging.root.level == logging.DEBUG
        file_handlers = [
            h
            for h in logging.root.handlers
            if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        assert file_handlers
        assert Path(file_handlers[-1].baseFilename) == tmp_path / "debug.log"


class LoopCheckingStore(MemoryStore):
    """Records every key touched while an event loop runs in the calling thread."""

    def __init__(self) -> None:
        super().__init__()
        self.loop_io: list[str] = []

    def _check(self, key: str) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        self.loop_io.append(key)

    def read(self, key: str) -> str | None:
        self._check(key)
        return super().read(key)

    def write(self, key: str, value: str) -> None:
        self._check(key)
        super().write(key, value)


@pytest.mark.parametrize(
    "argv",
    [
        ("genres", "toggle", "default-robotics"),
        ("genres", "add", "Software", "cat:cs.SE"),
        ("search", "q", "--like", "a"),
        ("saved", "list"),
    ],
)
def test_storage_io_stays_off_the_event_loop(fake_catalog, make_paper, argv) -> None:
    storage = LoopCheckingStore()
    fake_catalog.outcomes["q"] = SearchOk(papers=[make_paper("a")])

    main(
        list(argv),
        load_config_fn=AppConfig,
        storage_factory=lambda _config, _ephemeral: storage,
        services_factory=lambda _config, _client: AppServices(
            catalog=fake_catalog, translation=TranslationService()
        ),
        configure_logging_fn=lambda _debug, _verbose: None,
    )

    assert storage.loop_io == []


class TestConfigCommand:
    @pytest.fixture
    def saved(self) -> list[AppConfig]:
        return []

    def _run(self, saved: list[AppConfig], *argv: str, save_ok: bool = True) -> int:
        def _save(config: AppConfig) -> bool:
            saved.append(config)
            return save_ok

        return main(
            ["config", *argv],
            load_config_fn=lambda: AppConfig(max_results=7),
            configure_logging_fn=lambda _debug, _verbose: None,
            save_config_fn=_save,
        )

    def test_show(self, saved, capsys) -> None:
        with patch("paper_match.config.user_config_dir", return_value="/cfg"):
            assert self._run(saved, "show") == 0

        out = capsys.readouterr().out
        assert out.startswith(f"# {Path('/cfg') / 'config.json'}")
        assert json.loads(out.split("\n", 1)[1])["max_results"] == 7
        assert saved == []

    def test_set_saves_updated_config(self, saved, capsys) -> None:
        assert self._run(saved, "set", "target_language", "de") == 0

        assert saved == [AppConfig(max_results=7, target_language="de")]
        assert "target_language = de" in capsys.readouterr().out

    def test_set_clamps_numbers(self, saved) -> None:
        assert self._run(saved, "set", "max_results", "500") == 0
        assert saved[0].max_results == 100

    @pytest.mark.parametrize(("key", "value"), [("theme", "dark"), ("max_results", "many")])
    def test_set_rejects_bad_input(self, saved, capsys, key: str, value: str) -> None:
        assert self._run(saved, "set", key, value) == 2
        assert saved == []
        assert "config show" in capsys.readouterr().err

    def test_save_failure(self, saved, capsys) -> None:
        assert self._run(saved, "set", "user_agent", "x/1", save_ok=False) == 1
        assert "Could not save user_agent" in capsys.readouterr().err
