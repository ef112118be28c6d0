import tempfile
import unittest
from pathlib import Path

from cardswiss.config import Config, load_config, load_config_or_default


class LoadConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.dir = Path(tmp.name)

    def _write(self, text: str) -> Path:
        path = self.dir / "config.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_full_file(self) -> None:
        path = self._write(
            "tournament:\n"
            "  name: Weekly\n"
            "  format: Bo3\n"
            "  kind: League\n"
            "  pairing_mode: round_robin\n"
            "  rounds_planned: 4\n"
            "  top_cut_size: 8\n"
            "pairing:\n"
            "  seed: 99\n"
            "storage:\n"
            "  data_dir: ./store\n"
            "logging:\n"
            "  level: debug\n"
            "  file: ./out/app.log\n"
        )
        config = load_config(path)
        self.assertEqual(config.tournament.name, "Weekly")
        self.assertEqual(config.tournament.pairing_mode, "round_robin")
        self.assertEqual(config.tournament.top_cut_size, 8)
        self.assertEqual(config.pairing.seed, 99)
        self.assertEqual(config.data_path, Path("./store"))
        self.assertEqual(config.logging.level, "DEBUG")
        self.assertEqual(config.log_path, Path("./out/app.log"))

    def test_empty_file_uses_defaults(self) -> None:
        self.assertEqual(load_config(self._write("")), Config())

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_config(self.dir / "nope.yaml")
        self.assertEqual(load_config_or_default(self.dir / "nope.yaml"), Config())

    def test_invalid_values(self) -> None:
        for text in (
            "tournament:\n  format: Bo5\n",
            "tournament:\n  pairing_mode: knockout\n",
            "tournament:\n  rounds_planned: 0\n",
            "tournament:\n  top_cut_size: 6\n",
            "logging:\n  level: LOUD\n",
            "tournament: [1, 2]\n",
            "tournament:\n  rounds_planned: many\n",
        ):
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    load_config(self._write(text))

    def test_seeded_rng_repeats(self) -> None:
        path = self._write("pairing:\n  seed: 5\n")
        config = load_config(path)
        self.assertEqual(config.make_rng().random(), config.make_rng().random())


if __name__ == "__main__":
    unittest.main()
