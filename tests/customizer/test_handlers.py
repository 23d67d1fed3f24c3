"""
Unit Tests for Type-Specific Selection Handlers
"""

import io
import logging

import pytest
from PIL import Image

from layered_shop.core.models.choices import FileConfig, Position
from layered_shop.core.models.options import FileCustomization
from layered_shop.core.models.selections import MaterialSelection, TextSelection
from layered_shop.customizer.config import CustomizerConfig
from layered_shop.customizer.handlers import (
    CandidateFile,
    OptionTypeError,
    RejectionReason,
    remove_file,
    select_color,
    select_material,
    select_size,
    set_font,
    set_position,
    set_text,
    upload_files,
)

MB = 1024 * 1024


class TestSelectColor:
    """Tests for select_color."""

    def test_select_when_single_mode_then_replaces(self, single_color, red, blue):
        first = select_color(single_color, None, red).selection
        second = select_color(single_color, first, blue).selection

        assert second.color_names == ("Blue",)
        assert first.color_names == ("Red",)  # previous untouched

    def test_select_when_single_mode_same_color_twice_then_stays_selected(self, single_color, red):
        first = select_color(single_color, None, red).selection
        second = select_color(single_color, first, red).selection
        assert second.color_names == ("Red",)

    def test_select_when_multi_mode_then_appends_in_click_order(self, multi_color, red, gold):
        first = select_color(multi_color, None, gold).selection
        second = select_color(multi_color, first, red).selection
        assert second.color_names == ("Gold", "Red")

    def test_select_when_multi_mode_clicked_twice_then_back_to_original(self, multi_color, red, blue):
        """Double toggle restores the previous colour list."""
        start = select_color(multi_color, None, blue).selection

        once = select_color(multi_color, start, red).selection
        twice = select_color(multi_color, once, red).selection

        assert twice.selected_colors == start.selected_colors

    def test_select_when_limit_reached_then_rejected_and_unchanged(self, multi_color, red, blue, gold):
        state = select_color(multi_color, None, red).selection
        state = select_color(multi_color, state, blue).selection

        result = select_color(multi_color, state, gold)

        assert result.selection.color_names == ("Red", "Blue")
        assert len(result.rejected) == 1
        assert result.rejected[0].reason is RejectionReason.COLOR_LIMIT_REACHED
        assert result.rejected[0].subject == "Gold"

    def test_select_when_limit_reached_then_deselect_still_allowed(self, multi_color, red, blue):
        state = select_color(multi_color, None, red).selection
        state = select_color(multi_color, state, blue).selection

        result = select_color(multi_color, state, red)

        assert result.selection.color_names == ("Blue",)
        assert result.rejected == ()

    def test_select_when_multi_mode_without_limit_then_unbounded(self, red, blue, gold):
        from layered_shop.core.models.options import ColorCustomization

        option = ColorCustomization(
            id="c", label="C", color_options=(red, blue, gold), multiple_colors=True
        )
        state = None
        for color in (red, blue, gold):
            state = select_color(option, state, color).selection
        assert len(state.selected_colors) == 3

    def test_select_when_selection_is_other_type_then_raises_error(self, single_color, red, petg):
        previous = MaterialSelection("color", "Colour", petg)
        with pytest.raises(OptionTypeError):
            select_color(single_color, previous, red)


class TestSingleChoice:
    """Tests for the replace-only handlers."""

    def test_select_material_when_called_then_replaces(self, material, pla, petg):
        first = select_material(material, None, pla).selection
        second = select_material(material, first, petg).selection

        assert isinstance(second, MaterialSelection)
        assert second.selected_material == petg
        assert second.option_label == "Material"

    def test_select_material_when_option_is_other_type_then_raises_error(self, single_color, petg):
        with pytest.raises(OptionTypeError):
            select_material(single_color, None, petg)

    def test_select_size_when_called_then_price_follows_choice(self, large):
        from layered_shop.core.models.options import SizeCustomization

        option = SizeCustomization(id="size", label="Size", size_options=(large,))
        assert select_size(option, None, large).selection.price_modifier == 10


class TestText:
    """Tests for set_text, set_font and set_position."""

    def test_set_text_when_within_limit_then_stored(self, engraving):
        result = set_text(engraving, None, "hi")

        assert result.selection.text_value == "hi"
        assert result.rejected == ()

    def test_set_text_when_over_limit_then_truncated_and_reported(self, engraving):
        result = set_text(engraving, None, "hello world!")

        assert result.selection.text_value == "hello worl"
        assert result.rejected[0].reason is RejectionReason.TEXT_TRUNCATED

    def test_set_font_when_text_present_then_text_kept(self, engraving):
        text = set_text(engraving, None, "hi").selection

        result = set_font(engraving, text, "Mono").selection

        assert result.text_value == "hi"
        assert result.font_family == "Mono"

    def test_set_position_when_font_present_then_font_kept(self, engraving):
        font = set_font(engraving, None, "Arial").selection

        result = set_position(engraving, font, "back").selection

        assert result.position is Position.BACK
        assert result.font_family == "Arial"
        assert result.text_value is None

    def test_set_text_when_text_cleared_then_font_kept(self, engraving):
        state = TextSelection("engraving", "Engraving", text_value="hi", font_family="Mono")
        result = set_text(engraving, state, "").selection
        assert result.text_value == ""
        assert result.font_family == "Mono"


class TestUploadFiles:
    """Tests for upload_files and remove_file."""

    def test_upload_when_file_too_large_then_rejected(self, photo, registry):
        """6 MB jpg against a 5 MB limit."""
        result = upload_files(photo, None, [CandidateFile("big.jpg", b"\0" * (6 * MB))], registry)

        assert result.selection.uploaded_files == ()
        assert result.rejected[0].reason is RejectionReason.FILE_TOO_LARGE
        assert len(registry) == 0

    def test_upload_when_more_than_max_files_then_extra_rejected(self, photo, registry):
        """Three 1 MB pngs against max_files=2."""
        candidates = [CandidateFile(f"p{i}.png", b"\0" * MB) for i in range(3)]

        result = upload_files(photo, None, candidates, registry)

        assert [f.name for f in result.selection.uploaded_files] == ["p0.png", "p1.png"]
        assert [r.reason for r in result.rejected] == [RejectionReason.FILE_LIMIT_REACHED]
        assert result.rejected[0].subject == "p2.png"

    def test_upload_when_format_not_allowed_then_rejected(self, photo, registry):
        candidates = [CandidateFile("anim.gif", b"GIF89a"), CandidateFile("README", b"x")]

        result = upload_files(photo, None, candidates, registry)

        assert result.selection.uploaded_files == ()
        assert [r.reason for r in result.rejected] == [RejectionReason.DISALLOWED_FORMAT] * 2

    def test_upload_when_extension_upper_case_then_accepted(self, photo, registry, png_bytes):
        result = upload_files(photo, None, [CandidateFile("HOLIDAY.PNG", png_bytes)], registry)
        assert len(result.selection.uploaded_files) == 1

    def test_upload_when_previous_files_then_counted_against_limit(self, photo, registry, png_bytes):
        first = upload_files(photo, None, [CandidateFile("a.png", png_bytes)], registry).selection

        result = upload_files(
            photo, first, [CandidateFile("b.png", png_bytes), CandidateFile("c.png", png_bytes)],
            registry,
        )

        assert [f.name for f in result.selection.uploaded_files] == ["a.png", "b.png"]
        assert result.rejected[0].subject == "c.png"

    def test_upload_when_accepted_then_file_has_id_handle_and_size(self, photo, registry, sample_image):
        data = sample_image.read_bytes()

        uploaded = upload_files(
            photo, None, [CandidateFile("sample.png", data)], registry
        ).selection.uploaded_files[0]

        assert uploaded.id.startswith("file_")
        assert uploaded.size == len(data)
        assert registry.resolve(uploaded.url).data == data

    def test_upload_when_image_then_preview_is_thumbnail(self, photo, registry, png_bytes):
        config = CustomizerConfig(preview_max_px=256)

        uploaded = upload_files(
            photo, None, [CandidateFile("a.png", png_bytes)], registry, config
        ).selection.uploaded_files[0]

        preview = registry.resolve(uploaded.preview)
        assert preview.media_type == "image/png"
        with Image.open(io.BytesIO(preview.data)) as img:
            assert max(img.size) == 256

    def test_upload_when_image_undecodable_then_preview_uses_original(self, photo, registry, caplog):
        with caplog.at_level(logging.WARNING, logger="layered_shop.customizer.handlers"):
            uploaded = upload_files(
                photo, None, [CandidateFile("a.png", b"not really a png")], registry
            ).selection.uploaded_files[0]

        assert registry.resolve(uploaded.preview).data == b"not really a png"
        assert "uses original bytes" in caplog.text

    def test_upload_when_pixel_count_too_large_then_accepted_with_original_preview(
        self, photo, registry, png_bytes, monkeypatch, caplog
    ):
        """Small file, huge canvas: Pillow refuses to decode, upload still succeeds."""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

        with caplog.at_level(logging.WARNING, logger="layered_shop.customizer.handlers"):
            result = upload_files(photo, None, [CandidateFile("huge.png", png_bytes)], registry)

        uploaded = result.selection.uploaded_files[0]
        assert result.rejected == ()
        assert registry.resolve(uploaded.preview).data == png_bytes
        assert len(registry) == 2
        assert "uses original bytes" in caplog.text

    def test_upload_when_not_image_then_no_preview(self, registry):
        option = FileCustomization(
            id="doc", label="Document", file_config=FileConfig(allowed_formats=("pdf",))
        )

        uploaded = upload_files(
            option, None, [CandidateFile("brief.pdf", b"%PDF-1.4")], registry
        ).selection.uploaded_files[0]

        assert uploaded.preview is None
        assert len(registry) == 1

    def test_remove_file_when_known_id_then_handles_revoked(self, photo, registry, png_bytes):
        selection = upload_files(
            photo, None, [CandidateFile("a.png", png_bytes), CandidateFile("b.png", png_bytes)],
            registry,
        ).selection
        target = selection.uploaded_files[0]

        result = remove_file(photo, selection, target.id, registry)

        assert [f.name for f in result.selection.uploaded_files] == ["b.png"]
        assert target.url not in registry
        assert target.preview not in registry
        assert len(registry) == 2

    def test_remove_file_when_unknown_id_then_unchanged(self, photo, registry, png_bytes):
        selection = upload_files(photo, None, [CandidateFile("a.png", png_bytes)], registry).selection

        result = remove_file(photo, selection, "file_missing", registry)

        assert result.selection.uploaded_files == selection.uploaded_files
        assert len(registry) == 2

    def test_candidate_when_media_type_missing_then_guessed(self):
        candidate = CandidateFile("photo.jpg", b"")
        assert candidate.resolved_media_type == "image/jpeg"
        assert candidate.is_image is True
        assert CandidateFile("archive.tar.gz", b"").extension == "gz"
