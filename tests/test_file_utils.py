"""
Tests for image validation and object naming.
"""

import re
import uuid

import pytest

from propmatch.utils.exceptions import ValidationError
from propmatch.utils.file_utils import (
    FileValidator,
    ImageUpload,
    build_object_path,
    filter_valid_images,
    generate_object_name
)
from tests.conftest import make_image, make_jpeg


class TestFileValidator:

    def test_valid_png(self):
        assert FileValidator.validate_image(make_image("room.PNG")) == "image/png"

    def test_valid_jpeg_with_alias_mime(self):
        image = make_image("room.jpeg", image_format="JPEG", content_type="image/jpg")
        assert FileValidator.validate_image(image) == "image/jpeg"

    def test_missing_content_type_uses_detected_format(self):
        image = make_image("room.png", content_type=None)
        assert FileValidator.validate_image(image) == "image/png"

    def test_octet_stream_uses_detected_format(self):
        image = make_jpeg("room.jpg")
        image = ImageUpload(image.filename, image.content, "application/octet-stream")
        assert FileValidator.validate_image(image) == "image/jpeg"

    def test_unsupported_extension(self):
        with pytest.raises(ValidationError):
            FileValidator.validate_image(make_image("room.gif"))

    def test_missing_extension(self):
        with pytest.raises(ValidationError):
            FileValidator.validate_image(make_image("room"))

    def test_extension_must_match_content(self):
        with pytest.raises(ValidationError):
            FileValidator.validate_image(make_image("room.jpg", content_type="image/jpeg"))

    def test_not_an_image(self):
        with pytest.raises(ValidationError):
            FileValidator.validate_image(ImageUpload("room.png", b"hello", "image/png"))

    def test_too_large(self):
        with pytest.raises(ValidationError):
            FileValidator.validate_file_size(11 * 1024 * 1024)

    def test_disallowed_mime_type(self):
        with pytest.raises(ValidationError):
            FileValidator.validate_mime_type("application/pdf")

    def test_validate_images_collects_every_problem(self):
        images = [make_image("ok.png"), ImageUpload("bad.png", b"x", "image/png"), make_image("bad.gif")]

        with pytest.raises(ValidationError) as exc_info:
            FileValidator.validate_images(images)

        fields = [error["field"] for error in exc_info.value.field_errors]
        assert fields == ["images -> 1", "images -> 2"]


class TestFilterValidImages:

    def test_drops_empty_and_missing_files(self):
        kept = make_image()
        files = [None, ImageUpload("", b""), kept, ImageUpload("empty.png", b"", "image/png")]

        assert filter_valid_images(files) == [kept]

    def test_none(self):
        assert filter_valid_images(None) == []


class TestObjectNaming:

    def test_object_name_format(self):
        name = generate_object_name("Front Door.JPG")
        assert re.fullmatch(r"\d{13}-[a-z0-9]{12}\.jpg", name)

    def test_names_do_not_collide(self):
        names = {generate_object_name("a.png") for _ in range(200)}
        assert len(names) == 200

    def test_object_path_is_namespaced_by_property(self):
        property_id = uuid.uuid4()
        path = build_object_path(property_id, "a.webp")

        directory, name = path.split("/")
        assert directory == str(property_id)
        assert name.endswith(".webp")
