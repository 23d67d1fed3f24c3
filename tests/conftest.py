import io
import sys
from decimal import Decimal
from pathlib import Path

import pytest
from PIL import Image

# Add src to sys.path so we can import layered_shop
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from layered_shop.core.models import (  # noqa: E402
    ColorCustomization,
    ColorOption,
    FileConfig,
    FileCustomization,
    MaterialCustomization,
    MaterialOption,
    ProductCustomization,
    SelectCustomization,
    SelectOption,
    SizeCustomization,
    SizeOption,
    StrengthCustomization,
    StrengthOption,
    TextConfig,
    TextCustomization,
)
from layered_shop.customizer import ObjectUrlRegistry  # noqa: E402


# Common test fixtures
@pytest.fixture
def red():
    return ColorOption(name="Red", hex="#ff0000", price_modifier=2)


@pytest.fixture
def blue():
    return ColorOption(name="Blue", hex="#0000ff")


@pytest.fixture
def gold():
    return ColorOption(name="Gold", hex="#d4af37", price_modifier=Decimal("3.50"))


@pytest.fixture
def pla():
    return MaterialOption(name="PLA", code="pla")


@pytest.fixture
def petg():
    return MaterialOption(name="PETG", code="petg", price_modifier=5)


@pytest.fixture
def large():
    return SizeOption(name="Large", dimensions="120x120mm", price_modifier=10)


@pytest.fixture
def sturdy():
    return StrengthOption(name="Sturdy", fill_percentage=40, price_modifier=4)


@pytest.fixture
def gift_wrap():
    return SelectOption(label="Gift wrap", value="gift_wrap", price_modifier=Decimal("1.5"))


@pytest.fixture
def single_color(red, blue, gold):
    return ColorCustomization(
        id="color", label="Colour", required=True, color_options=(red, blue, gold)
    )


@pytest.fixture
def multi_color(red, blue, gold):
    return ColorCustomization(
        id="colors",
        label="Colours",
        color_options=(red, blue, gold),
        multiple_colors=True,
        color_limit=2,
    )


@pytest.fixture
def material(pla, petg):
    return MaterialCustomization(
        id="mat", label="Material", required=True, material_options=(pla, petg)
    )


@pytest.fixture
def engraving():
    return TextCustomization(
        id="engraving",
        label="Engraving",
        required=True,
        text_config=TextConfig(max_length=10),
        font_options=("Arial", "Mono"),
        position_options=("front", "back"),
    )


@pytest.fixture
def photo():
    return FileCustomization(
        id="photo",
        label="Photo",
        required=True,
        file_config=FileConfig(allowed_formats=("jpg", "png"), max_files=2, max_size_mb=5),
    )


@pytest.fixture
def full_schema(single_color, multi_color, material, engraving, photo, large, sturdy, gift_wrap):
    """A schema with one option of every type."""
    return ProductCustomization(
        options=(
            single_color,
            multi_color,
            material,
            SizeCustomization(id="size", label="Size", size_options=(large,)),
            StrengthCustomization(id="strength", label="Strength", strength_options=(sturdy,)),
            engraving,
            photo,
            SelectCustomization(id="extras", label="Extras", select_options=(gift_wrap,)),
        ),
        non_refundable=True,
        non_refundable_reason="Made to order",
    )


@pytest.fixture
def registry():
    with ObjectUrlRegistry() as reg:
        yield reg


@pytest.fixture
def png_bytes():
    """Encoded PNG image."""
    img = Image.new("RGB", (1200, 800), color="red")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_image(tmp_path: Path, png_bytes):
    """PNG image written to disk."""
    img_path = tmp_path / "sample.png"
    img_path.write_bytes(png_bytes)
    return img_path
