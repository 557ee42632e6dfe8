import tempfile
import unittest
from collections.abc import Mapping
from pathlib import Path

from config_models import AppConfig, RequiredOnly, TokenConfig

from layered_config import (
    CodecError,
    Defaults,
    Dotenv,
    Environment,
    ExtractionError,
    Failure,
    FileSource,
    LayeredConfigLoader,
    LoadedValue,
    LoadRequest,
    MissingFieldError,
    SourceReadError,
    load_config,
)


class RecordingObserver:
    def __init__(self) -> None:
        self.events = []

    def on_event(self, event) -> None:
        self.events.append(event)

    @property
    def names(self):
        return [e.name for e in self.events]


class CountingEnviron(Mapping):
    def __init__(self, data) -> None:
        self._data = dict(data)
        self.reads = 0

    def __getitem__(self, key):
        return self._data[key]

    def __iter__(self):
        self.reads += 1
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def keys(self):
        self.reads += 1
        return self._data.keys()


class MergeEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def write(self, name: str, text: str) -> Path:
        path = self.tmp / name
        path.write_text(text, encoding="utf-8")
        return path

    def test_toml_file_with_environment_without_matching_keys(self) -> None:
        path = self.write("c.toml", "setting1 = true\n")

        outcome = load_config(
            AppConfig,
            [Environment(), FileSource.toml(path)],
            environ={"PATH": "/usr/bin", "SETTING1": "false"},
        )

        self.assertIsInstance(outcome, LoadedValue)
        self.assertEqual(outcome.value.model_dump(), AppConfig(setting1=True).model_dump())

    def test_earlier_source_wins(self) -> None:
        path = self.write("c.toml", "setting2 = 3\nname = \"from-file\"\n")
        environ = {"setting2": "7"}

        env_first = load_config(AppConfig, [Environment(), FileSource.toml(path)], environ=environ)
        file_first = load_config(AppConfig, [FileSource.toml(path), Environment()], environ=environ)

        self.assertEqual(env_first.value.setting2, 7)
        self.assertEqual(file_first.value.setting2, 3)
        self.assertEqual(env_first.value.name, "from-file")

    def test_defaults_listed_first_hide_every_later_source(self) -> None:
        path = self.write("c.json", '{"setting1": true, "setting2": 9}')

        outcome = load_config(AppConfig, [Defaults(), FileSource.json(path)])

        self.assertEqual(outcome.value.model_dump(), AppConfig().model_dump())

    def test_nested_tables_merge_key_by_key(self) -> None:
        path = self.write("c.yaml", "server:\n  port: 9000\n")

        outcome = load_config(AppConfig, [FileSource.yaml(path), Defaults()])

        self.assertEqual(outcome.value.server.port, 9000)
        self.assertEqual(outcome.value.server.host, "127.0.0.1")

    def test_environment_values_are_coerced(self) -> None:
        outcome = load_config(
            AppConfig,
            [Environment()],
            environ={"setting1": "true", "setting2": "42", "tags": '["a", "b"]'},
        )

        self.assertEqual(outcome.value.setting1, True)
        self.assertEqual(outcome.value.setting2, 42)
        self.assertEqual(outcome.value.tags, ["a", "b"])

    def test_environment_prefix_and_nested_delimiter(self) -> None:
        environ = {
            "APP_server__port": "9100",
            "APP_SERVER__HOST": "ignored",
            "APP_name": "prefixed",
            "name": "unprefixed",
        }

        outcome = load_config(
            AppConfig,
            [Environment(prefix="APP_", nested_delimiter="__")],
            environ=environ,
        )

        self.assertEqual(outcome.value.server.model_dump(), {"host": "127.0.0.1", "port": 9100})
        self.assertEqual(outcome.value.name, "prefixed")

    def test_dotenv_source(self) -> None:
        path = self.write(".env", "setting2=5\nUNRELATED=x\n")

        outcome = load_config(AppConfig, [Dotenv(path=str(path)), Defaults()])

        self.assertEqual(outcome.value.setting2, 5)

    def test_missing_dotenv_contributes_nothing(self) -> None:
        outcome = load_config(AppConfig, [Dotenv(path=str(self.tmp / ".env"))])

        self.assertEqual(outcome.value.model_dump(), AppConfig().model_dump())

    def test_empty_sources_use_model_defaults(self) -> None:
        self.assertEqual(load_config(AppConfig, []).value.model_dump(), AppConfig().model_dump())

        outcome = load_config(TokenConfig, [])
        self.assertIsInstance(outcome, Failure)
        self.assertIsInstance(outcome.error, MissingFieldError)
        self.assertEqual(outcome.error.fields, ("token",))

    def test_defaults_source_always_loads_fully_defaulted_model(self) -> None:
        fallback = FileSource.toml(self.tmp / "unused.toml")

        outcome = load_config(AppConfig, [Defaults()], fallback)

        self.assertIsInstance(outcome, LoadedValue)
        self.assertEqual(outcome.value.model_dump(), AppConfig().model_dump())
        self.assertFalse(Path(fallback.path).exists())

    def test_defaults_source_for_model_without_default_fails(self) -> None:
        fallback = FileSource.toml(self.tmp / "unused.toml")

        outcome = load_config(RequiredOnly, [Defaults()], fallback)

        self.assertIsInstance(outcome, Failure)
        self.assertIsInstance(outcome.error, ExtractionError)
        self.assertNotIsInstance(outcome.error, MissingFieldError)
        self.assertFalse(Path(fallback.path).exists())

    def test_required_file_absent_is_read_error_without_bootstrap(self) -> None:
        source = FileSource.toml(self.tmp / "missing.toml")

        outcome = load_config(TokenConfig, [source], source)

        self.assertIsInstance(outcome, Failure)
        self.assertIsInstance(outcome.error, SourceReadError)
        self.assertIsInstance(outcome.error.cause, FileNotFoundError)
        self.assertFalse(Path(source.path).exists())

    def test_malformed_file_is_codec_error(self) -> None:
        path = self.write("c.json", "{not json")

        outcome = load_config(AppConfig, [FileSource.json(path)])

        self.assertIsInstance(outcome, Failure)
        self.assertIsInstance(outcome.error, CodecError)
        self.assertEqual(outcome.error.format, "json")
        self.assertIn(str(path), str(outcome.error))

    def test_type_mismatch_never_bootstraps(self) -> None:
        path = self.write("c.toml", 'token = "abc"\nretries = "many"\n')
        fallback = FileSource.toml(self.tmp / "fallback.toml")

        outcome = load_config(TokenConfig, [FileSource.toml(path)], fallback)

        self.assertIsInstance(outcome, Failure)
        self.assertIsInstance(outcome.error, ExtractionError)
        self.assertNotIsInstance(outcome.error, MissingFieldError)
        self.assertFalse(Path(fallback.path).exists())

    def test_environment_is_read_once_per_load(self) -> None:
        environ = CountingEnviron({"setting2": "4", "APP_name": "prefixed"})

        outcome = load_config(
            AppConfig,
            [Environment(), Environment(prefix="APP_"), Defaults()],
            environ=environ,
        )

        self.assertEqual(outcome.value.setting2, 4)
        self.assertEqual(outcome.value.name, "prefixed")
        self.assertEqual(environ.reads, 1)

    def test_loader_reports_events_to_observer(self) -> None:
        observer = RecordingObserver()
        loader = LayeredConfigLoader(AppConfig, observer=observer)

        outcome = loader.load(LoadRequest(sources=(Environment(), Defaults()), environ={"setting2": "1"}))

        self.assertIsInstance(outcome, LoadedValue)
        self.assertEqual(
            observer.names,
            ["config.source_loaded", "config.source_loaded", "config.loaded"],
        )
        self.assertEqual(observer.events[0].fields["keys"], ["setting2"])


if __name__ == "__main__":
    unittest.main()
