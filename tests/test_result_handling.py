"""Tests for result normalization, export and body data persistence."""

import base64
import io
from datetime import datetime

import httpx
import pytest
from PIL import Image

from styles_outfit.config import GenerationConfig
from styles_outfit.exceptions import DownloadError
from styles_outfit.models import BodyData, DownloadOptions, GenerateOutfitData
from styles_outfit.utils import (
    BODY_DATA_KEY,
    BodyDataStore,
    export_result,
    format_processing_time,
    generate_filename,
    normalize,
)


def png_base64(color=(200, 30, 30, 255), size=(4, 4)):
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def make_result(**raw_fields):
    raw = GenerateOutfitData(**raw_fields)
    return normalize(raw, "person.jpg", "blazer.png", elapsed_ms=1500)


class TestNormalize:
    def test_elapsed_time_comes_from_caller(self):
        raw = GenerateOutfitData(description="Nice", processing_time=99999)

        result = normalize(raw, "person.jpg", "blazer.png", elapsed_ms=4200)

        assert result.processing_time == 4200

    def test_metadata(self):
        before = datetime.now()
        result = normalize(
            GenerateOutfitData(description="Nice"),
            "me.png",
            "dress.webp",
            elapsed_ms=10,
            generation=GenerationConfig(model_label="Test Model", prompt_version="2.1"),
        )

        assert result.metadata.model_used == "Test Model"
        assert result.metadata.prompt_version == "2.1"
        assert result.metadata.original_images.person_image_name == "me.png"
        assert result.metadata.original_images.clothing_image_name == "dress.webp"
        assert result.generated_at >= before

    def test_description_only_result_has_no_image(self):
        result = make_result(description="Text only", generated_image_base64="")

        assert result.image_url == ""
        assert result.image_base64 is None
        assert not result.has_image

    def test_negative_elapsed_clamped(self):
        result = normalize(GenerateOutfitData(description="x"), "a", "b", elapsed_ms=-5)

        assert result.processing_time == 0

    def test_result_is_immutable(self):
        result = make_result(description="x")

        with pytest.raises(Exception):
            result.description = "changed"

    def test_wire_aliases(self):
        raw = GenerateOutfitData.model_validate({
            "generatedImageUrl": "https://cdn.example/out.png",
            "description": "ok",
            "processingTime": 10,
        })

        assert raw.generated_image_url == "https://cdn.example/out.png"
        assert raw.processing_time == 10


class TestFormatProcessingTime:
    @pytest.mark.parametrize("ms,expected", [
        (0, "0ms"),
        (850, "850ms"),
        (4200, "4s"),
        (2500, "3s"),
        (59400, "59s"),
        (125000, "2m 5s"),
    ])
    def test_format(self, ms, expected):
        assert format_processing_time(ms) == expected


class TestExport:
    def test_generate_filename(self):
        name = generate_filename("styles-outfit", "jpeg")

        assert name.startswith("styles-outfit-")
        assert name.endswith(".jpeg")
        # prefix-YYYY-MM-DD-HH-MM-SS.ext
        assert len(name.removeprefix("styles-outfit-").removesuffix(".jpeg").split("-")) == 6

    @pytest.mark.asyncio
    async def test_export_png(self, tmp_path):
        result = make_result(generated_image_base64=png_base64())

        path = await export_result(result, DownloadOptions(format="png", filename="look"), tmp_path)

        assert path == tmp_path / "look.png"
        with Image.open(path) as img:
            assert img.format == "PNG"

    @pytest.mark.asyncio
    async def test_export_jpeg_drops_alpha(self, tmp_path):
        result = make_result(generated_image_base64=png_base64())

        path = await export_result(result, DownloadOptions(format="jpeg", quality=0.5), tmp_path)

        assert path.suffix == ".jpeg"
        with Image.open(path) as img:
            assert img.format == "JPEG"
            assert img.mode == "RGB"

    @pytest.mark.asyncio
    async def test_export_from_data_url(self, tmp_path):
        result = make_result(generated_image_url=f"data:image/png;base64,{png_base64()}")

        path = await export_result(result, DownloadOptions(filename="from-url.png"), tmp_path)

        assert path.name == "from-url.png"

    @pytest.mark.asyncio
    async def test_no_image_raises(self, tmp_path):
        result = make_result(description="Text only")

        with pytest.raises(DownloadError):
            await export_result(result, DownloadOptions(), tmp_path)

    @pytest.mark.asyncio
    async def test_corrupt_image_raises(self, tmp_path):
        result = make_result(generated_image_base64=base64.b64encode(b"not an image").decode())

        with pytest.raises(DownloadError):
            await export_result(result, DownloadOptions(), tmp_path)

    @pytest.mark.asyncio
    async def test_data_url_without_payload_raises(self, tmp_path):
        result = make_result(generated_image_url="data:image/png;base64")

        with pytest.raises(DownloadError):
            await export_result(result, DownloadOptions(), tmp_path)

    @pytest.mark.asyncio
    async def test_remote_fetch_failure_raises(self, tmp_path, monkeypatch):
        def handler(request):
            return httpx.Response(404)

        original_client = httpx.AsyncClient

        def client_with_mock(*args, **kwargs):
            kwargs["transport"] = httpx.MockTransport(handler)
            return original_client(*args, **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", client_with_mock)
        result = make_result(generated_image_url="https://cdn.example/missing.png")

        with pytest.raises(DownloadError):
            await export_result(result, DownloadOptions(), tmp_path)


class TestBodyDataStore:
    def test_round_trip(self, tmp_path):
        store = BodyDataStore(tmp_path / "prefs.json")
        data = BodyData(height="170 cm", body_type="plus-size", gender="other")

        assert store.save(data)
        assert store.load() == data

    def test_saved_under_fixed_key_with_wire_names(self, tmp_path):
        path = tmp_path / "prefs.json"
        BodyDataStore(path).save(BodyData(body_type="athletic"))

        assert path.read_text(encoding="utf-8").count(BODY_DATA_KEY) == 1
        assert '"bodyType": "athletic"' in path.read_text(encoding="utf-8")

    def test_missing_file(self, tmp_path):
        assert BodyDataStore(tmp_path / "nope.json").load() is None

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{not json", encoding="utf-8")

        assert BodyDataStore(path).load() is None

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text('{"styles-body-data": {"bodyType": "giant"}}', encoding="utf-8")

        assert BodyDataStore(path).load() is None

    def test_other_keys_preserved(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text('{"theme": "dark"}', encoding="utf-8")

        BodyDataStore(path).save(BodyData(age="30"))

        assert '"theme": "dark"' in path.read_text(encoding="utf-8")

    def test_file_not_utf8(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        assert BodyDataStore(path).load() is None

    def test_save_over_file_not_utf8(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        store = BodyDataStore(path)

        assert store.save(BodyData(age="41"))
        assert store.load() == BodyData(age="41")
