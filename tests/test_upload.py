import threading
import time
import pytest
from unittest.mock import patch, MagicMock
from app.schemas.upload import UploadResult


@pytest.fixture
def mock_upload_service():
    with patch('app.routers.upload.UploadService') as mock_service_class:
        mock_instance = MagicMock()
        mock_service_class.return_value = mock_instance
        yield mock_instance


def test_upload_image_success(client, mock_upload_service, sample_image):
    """Test successful single image upload."""
    mock_upload_service.upload_file.return_value = UploadResult(
        success=True,
        path="main/123_abc.png",
        url="https://x.supabase.co/storage/v1/object/public/products/main/123_abc.png"
    )

    response = client.post(
        "/uploads",
        files={"file": ("photo.png", sample_image, "image/png")}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["path"] == "main/123_abc.png"
    assert data["url"].endswith("/products/main/123_abc.png")
    mock_upload_service.upload_file.assert_called_once_with(
        sample_image,
        folder="main",
        original_filename="photo.png",
        content_type="image/png"
    )


def test_upload_image_custom_folder(client, mock_upload_service, sample_image):
    mock_upload_service.upload_file.return_value = UploadResult(
        success=True, path="banners/1_x.png", url="https://x/1_x.png"
    )

    response = client.post(
        "/uploads",
        files={"file": ("photo.png", sample_image, "image/png")},
        data={"folder": "banners"}
    )

    assert response.status_code == 200
    assert mock_upload_service.upload_file.call_args.kwargs["folder"] == "banners"


def test_upload_image_storage_failure(client, mock_upload_service, sample_image):
    """Test that a failed upload result becomes a 502."""
    mock_upload_service.upload_file.return_value = UploadResult(
        success=False, error="Storage is not configured: missing SUPABASE_URL"
    )

    response = client.post(
        "/uploads",
        files={"file": ("photo.png", sample_image, "image/png")}
    )

    assert response.status_code == 502
    assert "Failed to upload file" in response.json()["detail"]
    assert "SUPABASE_URL" in response.json()["detail"]


def test_upload_image_rejects_type(client, mock_upload_service):
    response = client.post(
        "/uploads",
        files={"file": ("notes.txt", b"hello", "text/plain")}
    )

    assert response.status_code == 400
    assert "Unsupported file type" in response.json()["detail"]
    mock_upload_service.upload_file.assert_not_called()


def test_upload_image_rejects_large_file(client, mock_upload_service):
    with patch('app.routers.upload.settings.upload_max_bytes', 16):
        response = client.post(
            "/uploads",
            files={"file": ("big.png", b"\x00" * 17, "image/png")}
        )

    assert response.status_code == 413
    mock_upload_service.upload_file.assert_not_called()


def test_upload_image_missing_file(client):
    """Test upload request without a file."""
    response = client.post("/uploads", data={"folder": "main"})

    assert response.status_code == 422


def test_upload_gallery_sequential(client, mock_upload_service, sample_image):
    """Test that gallery files are uploaded in order with per-item results."""
    mock_upload_service.upload_file.side_effect = [
        UploadResult(success=True, path="gallery/1_a.png", url="https://x/1_a.png"),
        UploadResult(success=False, error="Storage rejected all 3 upload attempts"),
        UploadResult(success=True, path="gallery/1_c.jpg", url="https://x/1_c.jpg"),
    ]

    response = client.post(
        "/uploads/gallery",
        files=[
            ("files", ("a.png", sample_image, "image/png")),
            ("files", ("b.png", sample_image, "image/png")),
            ("files", ("c.jpg", sample_image, "image/jpeg")),
        ]
    )

    assert response.status_code == 200
    data = response.json()
    assert data["uploaded"] == 2
    assert data["failed"] == 1
    assert [item["success"] for item in data["results"]] == [True, False, True]
    filenames = [
        c.kwargs["original_filename"]
        for c in mock_upload_service.upload_file.call_args_list
    ]
    assert filenames == ["a.png", "b.png", "c.jpg"]
    assert all(
        c.kwargs["folder"] == "gallery"
        for c in mock_upload_service.upload_file.call_args_list
    )


def test_upload_gallery_validates_before_uploading(client, mock_upload_service, sample_image):
    response = client.post(
        "/uploads/gallery",
        files=[
            ("files", ("a.png", sample_image, "image/png")),
            ("files", ("b.pdf", b"%PDF", "application/pdf")),
        ]
    )

    assert response.status_code == 400
    mock_upload_service.upload_file.assert_not_called()


def test_delete_upload(client, mock_upload_service):
    mock_upload_service.delete_file.return_value = True

    response = client.delete("/uploads/main/123_abc.png")

    assert response.status_code == 200
    assert response.json() == {"path": "main/123_abc.png", "deleted": True}
    mock_upload_service.delete_file.assert_called_once_with("main/123_abc.png")


def test_delete_upload_failure(client, mock_upload_service):
    mock_upload_service.delete_file.return_value = False

    response = client.delete("/uploads/main/123_abc.png")

    assert response.status_code == 502
    assert "Failed to delete file" in response.json()["detail"]


def test_health_responsive_during_slow_upload(client, mock_upload_service, sample_image):
    """Test that a blocking storage call does not stall other requests."""
    upload_started = threading.Event()

    def slow_upload(*args, **kwargs):
        upload_started.set()
        time.sleep(1.0)
        return UploadResult(success=True, path="main/1_a.png", url="https://x/1_a.png")

    mock_upload_service.upload_file.side_effect = slow_upload
    upload_responses = []
    upload_thread = threading.Thread(
        target=lambda: upload_responses.append(client.post(
            "/uploads",
            files={"file": ("photo.png", sample_image, "image/png")}
        ))
    )
    upload_thread.start()
    assert upload_started.wait(timeout=5)

    started = time.monotonic()
    response = client.get("/health")
    elapsed = time.monotonic() - started
    upload_thread.join(timeout=5)

    assert response.status_code == 200
    assert elapsed < 0.5
    assert upload_responses[0].status_code == 200
