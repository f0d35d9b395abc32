from PIL import Image

from facelapse.alignment.geometry import Point2D, centroid
from facelapse.config import DetectionConfig
from facelapse.detection.eye_detector import HaarEyeDetector, box_corners
from facelapse.detection.landmark_file import LandmarkFileDetector


def test_box_corners_centroid_is_box_center():
    assert centroid(box_corners(10, 20, 30, 40)) == Point2D(25.0, 40.0)


def test_haar_detector_finds_nothing_in_blank_image():
    detector = HaarEyeDetector.from_config(DetectionConfig())
    assert detector.detect(Image.new("RGB", (320, 240), (128, 128, 128))) is None


def test_landmark_file_lookup_by_name(tmp_path):
    path = tmp_path / "landmarks.yaml"
    path.write_text(
        "face_01.jpg:\n"
        "  left_eye: [[10, 20], [12, 22]]\n"
        "  right_eye: [[50, 20], [52, 22]]\n"
        "face_02.jpg: null\n"
    )
    detector = LandmarkFileDetector.from_file(str(path))

    found = detector.detect(None, "/photos/face_01.jpg")
    assert found.left_eye == [Point2D(10.0, 20.0), Point2D(12.0, 22.0)]
    assert found.right_eye[1] == Point2D(52.0, 22.0)
    assert detector.detect(None, "face_02.jpg") is None
    assert detector.detect(None, "face_03.jpg") is None
    assert detector.detect(None) is None
