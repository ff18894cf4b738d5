"""Tests for the annotated PGN codec and AnnotationStore."""

import pytest

from chessbook.core.notation import (
    AnnotationStore,
    build_document,
    decode,
    decode_document,
    encode,
    encode_movetext,
    is_san_token,
    strip_clock_annotations,
)
from chessbook.errors import PgnSyntaxError


class TestAnnotationStore:
    def test_blank_comment_removes_entry(self) -> None:
        store = AnnotationStore({0: "first"})
        store[0] = "   "
        assert 0 not in store
        assert len(store) == 0

    def test_whitespace_is_normalized(self) -> None:
        store = AnnotationStore()
        store[3] = "  sharp\n   line "
        assert store[3] == "sharp line"

    def test_negative_ply_rejected(self) -> None:
        store = AnnotationStore()
        with pytest.raises(ValueError):
            store[-1] = "start position"

    def test_non_int_ply_rejected(self) -> None:
        store = AnnotationStore()
        with pytest.raises(TypeError):
            store["3"] = "not a ply"  # type: ignore[index]

    def test_clock_annotations_never_stored(self) -> None:
        store = AnnotationStore({0: "[%clk 0:01:00]", 1: "[%clk 0:00:59] tempo"})
        assert store == {1: "tempo"}

    def test_compares_equal_to_plain_dict(self) -> None:
        assert AnnotationStore({2: "x", 0: "y"}) == {0: "y", 2: "x"}

    def test_iterates_in_ply_order(self) -> None:
        store = AnnotationStore({4: "c", 0: "a", 2: "b"})
        assert list(store) == [0, 2, 4]

    def test_trimmed_drops_stale_plies(self) -> None:
        store = AnnotationStore({0: "a", 3: "b", 7: "c"})
        assert store.trimmed(4) == {0: "a", 3: "b"}
        assert 7 in store

    def test_drop_from(self) -> None:
        store = AnnotationStore({0: "a", 3: "b", 7: "c"})
        store.drop_from(3)
        assert store == {0: "a"}

    def test_append_joins_with_space(self) -> None:
        store = AnnotationStore({1: "solid"})
        store.append(1, "but passive")
        store.append(2, "fresh")
        assert store == {1: "solid but passive", 2: "fresh"}


class TestDecode:
    def test_annotated_example(self) -> None:
        moves, comments = decode("1. e4 e5 2. Nf3 {good developing move} Nc6 3. Bb5")
        assert moves == ["e4", "e5", "Nf3", "Nc6", "Bb5"]
        assert comments == {2: "good developing move"}

    def test_empty_text(self) -> None:
        moves, comments = decode("")
        assert moves == []
        assert comments == {}

    def test_headers_are_stripped_and_kept_verbatim(self) -> None:
        text = '[Event "Repertoire"]\n[White "Me"]\n\n1. d4 d5 2. c4\n'
        parsed = decode_document(text)
        assert parsed.moves == ["d4", "d5", "c4"]
        assert parsed.headers == ('[Event "Repertoire"]', '[White "Me"]')
        assert parsed.tags == {"Event": "Repertoire", "White": "Me"}

    def test_move_numbers_glued_to_moves(self) -> None:
        moves, _comments = decode("1.e4 c5 2.Nf3 d6 3.d4")
        assert moves == ["e4", "c5", "Nf3", "d6", "d4"]

    def test_comment_attaches_to_preceding_ply(self) -> None:
        moves, comments = decode("1. e4 {king pawn} 1... e5 {symmetrical}")
        assert moves == ["e4", "e5"]
        assert comments == {0: "king pawn", 1: "symmetrical"}

    def test_comment_on_black_move_needs_no_number(self) -> None:
        _moves, comments = decode("1. d4 Nf6 {Indian} 2. c4 e6")
        assert comments == {1: "Indian"}

    def test_result_token_is_recorded(self) -> None:
        parsed = decode_document("1. e4 e5 2. Qh5 Nc6 3. Bc4 Nf6 4. Qxf7# 1-0")
        assert parsed.moves[-1] == "Qxf7#"
        assert parsed.result == "1-0"

    def test_clock_annotations_are_stripped(self) -> None:
        text = "1. e4 {[%clk 0:03:00]} e5 {[%clk 0:02:59] solid reply}"
        _moves, comments = decode(text)
        assert comments == {1: "solid reply"}

    def test_bare_clock_annotation_is_stripped(self) -> None:
        _moves, comments = decode("1. e4 {%clk 0:01:00 fast}")
        assert comments == {0: "fast"}

    def test_comment_whitespace_collapses(self) -> None:
        _moves, comments = decode("1. e4 {  open\n   game  }")
        assert comments == {0: "open game"}

    def test_consecutive_comments_are_joined(self) -> None:
        _moves, comments = decode("1. e4 {first} {second} e5")
        assert comments == {0: "first second"}

    def test_comment_before_first_move_is_preamble(self) -> None:
        parsed = decode_document("{Main line of the Ruy Lopez} 1. e4 e5")
        assert parsed.preamble == "Main line of the Ruy Lopez"
        assert parsed.comments == {}
        assert parsed.moves == ["e4", "e5"]

    def test_castling_promotion_and_glyphs(self) -> None:
        moves, _comments = decode("1. e4!? e5 2. O-O?? O-O-O+ 3. exd8=Q# 0-0")
        assert moves == ["e4", "e5", "O-O", "O-O-O+", "exd8=Q#", "0-0"]

    def test_numeric_glyphs_are_skipped(self) -> None:
        moves, _comments = decode("1. e4 $1 e5 $6")
        assert moves == ["e4", "e5"]

    def test_unterminated_comment_raises(self) -> None:
        with pytest.raises(PgnSyntaxError, match="Unterminated") as excinfo:
            decode("1. e4 {oops")
        assert excinfo.value.offset == 6

    def test_unknown_token_raises(self) -> None:
        with pytest.raises(PgnSyntaxError) as excinfo:
            decode("1. e4 banana e5")
        assert excinfo.value.token == "banana"
        assert excinfo.value.offset == 6

    def test_stray_closing_brace_raises(self) -> None:
        with pytest.raises(PgnSyntaxError, match="Unexpected"):
            decode("1. e4 } e5")

    def test_variations_are_rejected(self) -> None:
        with pytest.raises(PgnSyntaxError, match="Variations"):
            decode("1. e4 e5 (1... c5) 2. Nf3")

    def test_syntax_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            decode("1. e4 {")


class TestEncode:
    def test_comment_on_white_move_reannounces_black(self) -> None:
        moves = ["e4", "e5", "Nf3", "Nc6", "Bb5"]
        text = encode(moves, {2: "good developing move"})
        assert text == "1. e4 e5 2. Nf3 {good developing move} 2... Nc6 3. Bb5"

    def test_plain_moves(self) -> None:
        assert encode(["e4", "e5", "Nf3"], {}) == "1. e4 e5 2. Nf3"

    def test_comment_on_black_move(self) -> None:
        assert encode(["e4", "e5", "Nf3"], {1: "x"}) == "1. e4 e5 {x} 2. Nf3"

    def test_comment_on_last_move_has_no_trailing_space(self) -> None:
        assert encode(["e4"], {0: "only move"}) == "1. e4 {only move}"

    def test_stale_comments_are_ignored(self) -> None:
        assert encode(["e4", "e5"], {5: "stale"}) == "1. e4 e5"

    def test_closing_brace_is_replaced(self) -> None:
        assert encode(["d4"], {0: "a } b"}) == "1. d4 {a ] b}"

    def test_empty(self) -> None:
        assert encode([], {}) == ""

    def test_build_document(self) -> None:
        text = build_document(['[Event "Test"]'], ["e4", "c5"], {1: "Sicilian"}, "*")
        assert text == '[Event "Test"]\n\n1. e4 c5 {Sicilian} *\n'

    def test_build_document_without_headers(self) -> None:
        assert build_document((), ["e4"], {}) == "1. e4\n"

    def test_build_document_keeps_preamble(self) -> None:
        text = build_document((), ["e4", "e5"], {}, "*", preamble="Open game")
        assert text == "{Open game} 1. e4 e5 *\n"

    def test_build_document_preamble_only(self) -> None:
        assert build_document((), [], {}, preamble="empty") == "{empty}\n"


class TestEncodeFromPosition:
    def test_black_first_opens_with_ellipsis(self) -> None:
        text = encode_movetext(
            ["c5", "Nf3", "d6"], {0: "Sicilian"}, first_move_number=1, white_first=False
        )
        assert text == "1... c5 {Sicilian} 2. Nf3 d6"

    def test_comment_on_white_move_after_black_start(self) -> None:
        text = encode_movetext(
            ["Nf6", "c4", "e6"], {1: "gambit"}, first_move_number=12, white_first=False
        )
        assert text == "12... Nf6 13. c4 {gambit} 13... e6"

    def test_late_white_start(self) -> None:
        text = encode_movetext(["Rd1", "Rd8"], {}, first_move_number=20)
        assert text == "20. Rd1 Rd8"

    def test_defaults_match_encode(self) -> None:
        moves = ["e4", "e5", "Nf3", "Nc6"]
        comments = {2: "develops"}
        assert encode_movetext(moves, comments) == encode(moves, comments)


class TestRoundTrip:
    @pytest.mark.parametrize(
        ("moves", "comments"),
        [
            (["e4", "e5", "Nf3", "Nc6", "Bb5"], {2: "good developing move"}),
            (["d4", "Nf6", "c4"], {0: "a", 1: "b", 2: "c"}),
            (["e4", "c5", "Nf3", "d6", "d4", "cxd4", "Nxd4"], {5: "open Sicilian"}),
            (["O-O", "O-O-O", "exd8=Q+"], {}),
            (["e4", "e5"], {0: "[%clk 0:01:00]", 1: "[%clk 0:00:58] quick"}),
            ([], {}),
        ],
    )
    def test_decode_inverts_encode(self, moves: list[str], comments: dict[int, str]) -> None:
        store = AnnotationStore(comments)
        decoded_moves, decoded_comments = decode(encode(moves, store))
        assert decoded_moves == moves
        assert decoded_comments == store

    def test_encode_is_idempotent_after_decode(self) -> None:
        text = "1.e4 {a} e5 2.Nf3   Nc6 {b}\n3. Bb5 {[%clk 0:01:00]}"
        once = encode(*decode(text))
        twice = encode(*decode(once))
        assert once == "1. e4 {a} 1... e5 2. Nf3 Nc6 {b} 3. Bb5"
        assert twice == once


class TestHelpers:
    @pytest.mark.parametrize(
        "token",
        ["e4", "exd5", "Nbd7", "R1e2", "Qh4xe1", "e8=Q", "O-O", "Kxe2+", "Nf3!?"],
    )
    def test_san_tokens(self, token: str) -> None:
        assert is_san_token(token)

    @pytest.mark.parametrize("token", ["e9", "Zf3", "1.", "banana", "e2e4"])
    def test_non_san_tokens(self, token: str) -> None:
        assert not is_san_token(token)

    def test_strip_clock_annotations(self) -> None:
        assert strip_clock_annotations("[%clk 1:00:00] keep  this") == "keep this"
