"""
Unit Tests for the Admin Schema Editor
"""

import json
from itertools import count

import pytest

from layered_shop.core.models.choices import (
    ColorOption,
    MaterialCode,
    MaterialOption,
    Position,
)
from layered_shop.core.models.options import (
    ColorCustomization,
    FileCustomization,
    OptionType,
    ProductCustomization,
    SelectCustomization,
    TextCustomization,
)
from layered_shop.core.utils.serialization import deserialize_customization
from layered_shop.customizer.handlers import OptionTypeError
from layered_shop.customizer.session import UnknownOptionError
from layered_shop.editor.config import EditorConfig
from layered_shop.editor.schema_editor import (
    SchemaEditor,
    SchemaError,
    check_customization,
    slugify_label,
)


@pytest.fixture
def clock():
    """Deterministic clock: one second later on every call."""
    ticks = count(1_700_000_000)
    return lambda: float(next(ticks))


@pytest.fixture
def editor(clock):
    return SchemaEditor(clock=clock)


class TestOptions:
    """Tests for adding, editing and ordering options."""

    def test_add_option_when_color_then_single_with_limit_one(self, editor):
        option = editor.add_option("color")

        assert isinstance(option, ColorCustomization)
        assert option.label == "Colours"
        assert option.multiple_colors is False
        assert option.color_limit == 1
        assert option.required is False
        assert option.id.startswith("opt_")

    def test_add_option_when_text_then_default_text_config(self, editor):
        option = editor.add_option(OptionType.TEXT)

        assert isinstance(option, TextCustomization)
        assert option.text_config.max_length == 50
        assert option.text_config.placeholder == "Enter text..."
        assert option.font_options == ()

    def test_add_option_when_file_then_default_file_config(self, editor):
        option = editor.add_option("file")

        assert isinstance(option, FileCustomization)
        assert option.file_config.allowed_formats == ("jpg", "png")
        assert option.file_config.max_files == 1
        assert option.file_config.max_size_mb == 5
        assert option.file_config.show_preview is True

    def test_add_option_when_label_given_then_used(self, editor):
        assert editor.add_option("size", label="Pick a size").label == "Pick a size"

    def test_add_option_when_same_millisecond_then_ids_unique(self):
        editor = SchemaEditor(clock=lambda: 1_700_000_000.0)

        first = editor.add_option("size")
        second = editor.add_option("size")

        assert first.id != second.id

    def test_update_option_when_fields_given_then_merged(self, editor):
        option = editor.add_option("material")

        updated = editor.update_option(option.id, required=True, description="Filament")

        assert updated.required is True
        assert updated.description == "Filament"
        assert editor.get_option(option.id) == updated

    def test_update_option_when_field_of_other_type_then_raises_error(self, editor):
        option = editor.add_option("material")
        with pytest.raises(TypeError, match="no field"):
            editor.update_option(option.id, color_limit=3)

    def test_update_option_when_id_taken_then_raises_error(self, editor):
        first = editor.add_option("size")
        second = editor.add_option("size")
        with pytest.raises(ValueError, match="already in use"):
            editor.update_option(second.id, id=first.id)

    def test_update_option_when_unknown_id_then_raises_error(self, editor):
        with pytest.raises(UnknownOptionError):
            editor.update_option("opt_missing", required=True)

    def test_remove_option_when_known_then_removed(self, editor):
        option = editor.add_option("size")

        assert editor.remove_option(option.id) is True
        assert editor.remove_option(option.id) is False
        assert editor.options == ()

    def test_duplicate_option_when_called_then_copy_appended(self, editor):
        option = editor.add_option("color", label="Body")
        editor.add_choice(option.id, ColorOption(name="Red", hex="#f00"))

        copy = editor.duplicate_option(option.id)

        assert copy.id != option.id
        assert copy.label == "Body (copy)"
        assert copy.color_options == editor.get_option(option.id).color_options
        assert editor.options[-1] is copy

    def test_move_option_when_moved_down_then_swapped(self, editor):
        a, b, c = (editor.add_option("size", label=x) for x in "abc")

        assert editor.move_option(0, "down") is True

        assert [o.label for o in editor.options] == ["b", "a", "c"]

    def test_move_option_when_out_of_range_then_no_op(self, editor):
        editor.add_option("size", label="a")
        editor.add_option("size", label="b")

        assert editor.move_option(0, "up") is False
        assert editor.move_option(1, "down") is False
        assert [o.label for o in editor.options] == ["a", "b"]

    def test_move_option_when_bad_direction_then_raises_error(self, editor):
        with pytest.raises(ValueError, match="direction"):
            editor.move_option(0, "left")

    def test_move_up_when_by_id_then_swapped(self, editor):
        editor.add_option("size", label="a")
        b = editor.add_option("size", label="b")

        editor.move_up(b.id)

        assert [o.label for o in editor.options] == ["b", "a"]
        assert editor.move_down(b.id) is True
        assert [o.label for o in editor.options] == ["a", "b"]


class TestChoices:
    """Tests for the choice sub-editors."""

    def test_add_choice_when_omitted_then_default_template(self, editor):
        color = editor.add_option("color")
        material = editor.add_option("material")
        size = editor.add_option("size")
        strength = editor.add_option("strength")

        assert editor.add_choice(color.id).color_options[0].hex == "#000000"
        assert editor.add_choice(material.id).material_options[0].code is MaterialCode.PLA
        assert editor.add_choice(size.id).size_options[0].dimensions == "0x0mm"
        assert editor.add_choice(strength.id).strength_options[0].fill_percentage == 15

    def test_add_choice_when_select_then_value_generated(self, editor):
        option = editor.add_option("select")

        entry = editor.add_choice(option.id).select_options[0]

        assert entry.label == "New option"
        assert entry.value.startswith("opt_")

    def test_add_choice_when_text_option_then_raises_error(self, editor):
        option = editor.add_option("text")
        with pytest.raises(OptionTypeError):
            editor.add_choice(option.id)

    def test_update_choice_when_select_label_changed_then_value_slugged(self, editor):
        option = editor.add_option("select")
        editor.add_choice(option.id)

        updated = editor.update_choice(option.id, 0, label="Gift Wrap  Red")

        assert isinstance(updated, SelectCustomization)
        assert updated.select_options[0].label == "Gift Wrap  Red"
        assert updated.select_options[0].value == "gift_wrap_red"

    def test_update_choice_when_value_explicit_then_kept(self, editor):
        option = editor.add_option("select")
        editor.add_choice(option.id)

        updated = editor.update_choice(option.id, 0, label="Gift", value="gw")

        assert updated.select_options[0].value == "gw"

    def test_update_choice_when_price_given_then_decimal(self, editor):
        option = editor.add_option("material")
        editor.add_choice(option.id, MaterialOption(name="PETG", code="petg"))

        updated = editor.update_choice(option.id, 0, price_modifier=5)

        assert updated.material_options[0].price_delta == 5

    def test_update_choice_when_index_out_of_range_then_raises_error(self, editor):
        option = editor.add_option("size")
        with pytest.raises(IndexError):
            editor.update_choice(option.id, 3, name="XL")

    def test_remove_choice_when_index_given_then_removed(self, editor):
        option = editor.add_option("size")
        editor.add_choice(option.id)
        editor.add_choice(option.id)

        updated = editor.remove_choice(option.id, 0)

        assert len(updated.size_options) == 1
        assert len(editor.remove_choice(option.id, 9).size_options) == 1


class TestTextAndFile:
    """Tests for the text and file sub-editors."""

    def test_update_text_config_when_called_then_merged(self, editor):
        option = editor.add_option("text")

        updated = editor.update_text_config(option.id, max_length=12, allow_emoji=True)

        assert updated.text_config.max_length == 12
        assert updated.text_config.allow_emoji is True
        assert updated.text_config.placeholder == "Enter text..."

    def test_add_font_when_blank_then_ignored(self, editor):
        option = editor.add_option("text")

        editor.add_font(option.id, "Arial")
        editor.add_font(option.id, "")
        updated = editor.add_font(option.id, "Mono")

        assert updated.font_options == ("Arial", "Mono")
        assert editor.remove_font(option.id, 0).font_options == ("Mono",)

    def test_toggle_position_when_called_twice_then_removed(self, editor):
        option = editor.add_option("text")

        assert editor.toggle_position(option.id, "front").position_options == (Position.FRONT,)
        assert editor.toggle_position(option.id, Position.FRONT).position_options == ()

    def test_text_editor_when_option_not_text_then_raises_error(self, editor):
        option = editor.add_option("file")
        with pytest.raises(OptionTypeError):
            editor.add_font(option.id, "Arial")

    def test_toggle_format_when_supported_then_toggled(self, editor):
        option = editor.add_option("file")

        assert editor.toggle_format(option.id, "webp").file_config.allowed_formats == (
            "jpg", "png", "webp",
        )
        assert editor.toggle_format(option.id, "JPG").file_config.allowed_formats == (
            "png", "webp",
        )

    def test_toggle_format_when_unsupported_then_raises_error(self, editor):
        option = editor.add_option("file")
        with pytest.raises(ValueError, match="Unsupported file format"):
            editor.toggle_format(option.id, "exe")

    def test_update_file_config_when_called_then_merged(self, editor):
        option = editor.add_option("file")

        updated = editor.update_file_config(option.id, max_files=3, show_preview=False)

        assert updated.file_config.max_files == 3
        assert updated.file_config.show_preview is False


class TestBuild:
    """Tests for build, strict checks and the form field."""

    def test_build_when_required_selectable_empty_then_raises_error(self, editor):
        color = editor.add_option("color")
        editor.update_option(color.id, required=True)
        text = editor.add_option("text")
        editor.update_option(text.id, required=True)

        with pytest.raises(SchemaError) as exc_info:
            editor.build()

        assert len(exc_info.value.errors) == 1
        assert color.id in exc_info.value.errors[0]

    def test_build_when_not_strict_then_allows_empty_required(self, editor):
        color = editor.add_option("color")
        editor.update_option(color.id, required=True)

        assert len(editor.build(strict=False).options) == 1

    def test_check_customization_when_schema_satisfiable_then_passes(self, full_schema):
        check_customization(full_schema)

    def test_set_non_refundable_when_reason_given_then_built(self, editor):
        editor.set_non_refundable(True, "Made to order")

        built = editor.build()

        assert built.non_refundable is True
        assert built.non_refundable_reason == "Made to order"

    def test_set_non_refundable_when_turned_off_then_reason_dropped(self, editor):
        editor.set_non_refundable(True, "Made to order")
        editor.set_non_refundable(False)

        assert editor.build().non_refundable_reason is None

    def test_to_form_field_when_edited_then_json_round_trips(self, editor):
        option = editor.add_option("material")
        editor.add_choice(option.id, MaterialOption(name="PETG", code="petg", price_modifier=5))

        name, payload = editor.to_form_field()

        assert name == "customization"
        restored = deserialize_customization(json.loads(payload), strict=True)
        assert restored == editor.build()

    def test_to_form_field_when_never_edited_then_none(self):
        assert SchemaEditor().to_form_field() is None

    def test_clear_when_called_then_customization_removed(self, editor):
        editor.add_option("size")

        editor.clear()

        assert editor.removed is True
        assert editor.to_form_field() is None
        assert editor.build() == ProductCustomization.empty()

    def test_editor_when_started_from_schema_then_options_kept(self, full_schema):
        editor = SchemaEditor(full_schema)

        assert editor.removed is False
        assert editor.build() == full_schema


class TestHelpers:
    """Tests for module helpers and configuration."""

    def test_slugify_when_spaces_then_underscored(self):
        assert slugify_label("Gift Wrap  Red") == "gift_wrap_red"
        assert slugify_label("\tTwo\nLines ") == "_two_lines_"

    def test_config_when_prefix_empty_then_raises_error(self):
        with pytest.raises(ValueError, match="option_id_prefix"):
            EditorConfig(option_id_prefix="")

    def test_config_when_labels_overridden_then_used(self, clock):
        config = EditorConfig(labels={OptionType.SIZE: "Rozmiary"}, copy_suffix=" (kopia)")
        editor = SchemaEditor(config=config, clock=clock)

        size = editor.add_option("size")
        color = editor.add_option("color")

        assert size.label == "Rozmiary"
        assert color.label == "Option"
        assert editor.duplicate_option(size.id).label == "Rozmiary (kopia)"
