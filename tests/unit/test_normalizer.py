#
# tests/unit/test_normalizer.py
#
import pytest

from clitester import normalizer


class TestNormalizer:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("\x1b[31mred\x1b[0m", "red"),
            ("\x1b[1;32;40mbold green\x1b[m", "bold green"),
            ("\x1b[2K\x1b[1Gprogress", "progress"),
            ("\x1b]0;window title\x07text", "text"),
            ("\x1b]8;;https://example.com\x1b\\link\x1b]8;;\x1b\\", "link"),
            ("plain", "plain"),
        ],
    )
    def test_strip_ansi_codes(self, raw: str, expected: str) -> None:
        assert normalizer.strip_ansi_codes(raw) == expected

    def test_line_endings(self) -> None:
        assert normalizer.normalize_line_endings("a\r\nb\rc\n") == "a\nb\nc\n"

    def test_base_path_replaced(self, tmp_path) -> None:
        text = f"wrote {tmp_path}/out.txt and {tmp_path}"

        assert normalizer.normalize_paths(text, tmp_path) == "wrote {base}/out.txt and {base}"

    def test_base_path_with_trailing_separator(self, tmp_path) -> None:
        assert normalizer.normalize_paths(f"{tmp_path}/x", f"{tmp_path}/") == "{base}/x"

    def test_resolved_base_path_replaced(self, tmp_path) -> None:
        real = tmp_path / "real"
        real.mkdir()
        link = tmp_path / "link"
        link.symlink_to(real)

        text = f"{real.resolve()}/a {link}/b"

        assert normalizer.normalize_paths(text, link) == "{base}/a {base}/b"

    def test_home_replaced_after_base(self, tmp_path, monkeypatch) -> None:
        home = tmp_path / "home"
        base = home / "sandbox"
        monkeypatch.setenv("HOME", str(home))

        text = f"{base}/file {home}/.config"

        assert normalizer.normalize_paths(text, base) == "{base}/file {home}/.config"

    def test_clean_special_chars_keeps_newline_and_tab(self) -> None:
        assert normalizer.clean_special_chars("a\tb\x00c\x07\nd\x7f") == "a\tbc\nd"

    def test_unicode_is_kept(self) -> None:
        assert normalizer.clean_special_chars("héllo ✓") == "héllo ✓"

    def test_normalize_combines_all_steps(self, tmp_path) -> None:
        raw = f"\x1b[32m✓\x1b[0m saved {tmp_path}/cfg.toml\r\n\x00"

        assert normalizer.normalize(raw, tmp_path) == "✓ saved {base}/cfg.toml\n"
