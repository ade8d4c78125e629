import numpy as np
import pytest

from skinmirror.config import AnalysisConfig
from skinmirror.effects.analysis import (
    FOREHEAD_IDX, LEFT_CHEEK_IDX, RIGHT_CHEEK_IDX, SkinAnalyzer,
    build_recommendations, classify_acne, classify_tone, classify_type,
    estimate_acne, estimate_tzone, face_bounding_box, luma_stats, red_spot_density,
)


def face_over_box(make_face, x0, y0, x1, y1):
    return make_face({0: (x0, y0), 1: (x1, y1)}, default=((x0 + x1) / 2, (y0 + y1) / 2))


class TestClassifiers:
    @pytest.mark.parametrize("luma,expected", [
        (0.0, "Dark"), (79.9, "Dark"), (80.0, "Medium"),
        (149.9, "Medium"), (150.0, "Bright"), (255.0, "Bright"),
    ])
    def test_tone_boundaries(self, luma, expected):
        assert classify_tone(luma) == expected

    @pytest.mark.parametrize("contrast,luma,expected", [
        (61.0, 81.0, "Oily"),
        (60.0, 120.0, "Normal / Combination"),
        (61.0, 80.0, "Normal / Combination"),
        (34.9, 120.0, "Dry"),
        (35.0, 120.0, "Normal / Combination"),
        (0.0, 100.0, "Dry"),
    ])
    def test_type_boundaries(self, contrast, luma, expected):
        assert classify_type(contrast, luma) == expected

    @pytest.mark.parametrize("density,expected", [
        (0.06, "High"), (0.05, "Moderate"), (0.03, "Moderate"),
        (0.02, "Mild"), (0.01, "Mild"), (0.005, "Low / None"), (0.0, "Low / None"),
    ])
    def test_acne_strict_edges(self, density, expected):
        assert classify_acne(density) == expected

    def test_custom_thresholds(self):
        cfg = AnalysisConfig(tone_dark_below=50)
        assert classify_tone(60, cfg) == "Medium"


class TestRegionStats:
    def test_uniform_region_has_no_contrast(self, make_frame):
        avg, contrast = luma_stats(make_frame(10, 10, (150, 150, 150)))
        assert avg == pytest.approx(150.0)
        assert contrast == pytest.approx(0.0, abs=1e-6)

    def test_contrast_of_two_levels(self, make_frame):
        region = make_frame(10, 10, (0, 0, 0))
        region[:5] = (200, 200, 200, 255)
        avg, contrast = luma_stats(region)
        assert avg == pytest.approx(100.0)
        assert contrast == pytest.approx(100.0)

    def test_red_spot_density(self, make_frame):
        region = make_frame(10, 10, (120, 110, 100))
        region[0, :5] = (200, 80, 80, 255)
        assert red_spot_density(region) == 0.05
        assert estimate_acne(region) == "Moderate"

    def test_pixel_below_margin_not_counted(self, make_frame):
        # R > G + 25 не выполнено (ровно 25)
        region = make_frame(4, 4, (200, 175, 100))
        assert red_spot_density(region) == 0.0

    def test_bounding_box(self, make_face):
        face = face_over_box(make_face, 0.25, 0.1, 0.75, 0.9)
        assert face_bounding_box(face, 200, 100) == (50, 10, 100, 80)

    def test_bounding_box_is_at_least_one_pixel(self, make_face):
        face = make_face(default=(0.5, 0.5))
        assert face_bounding_box(face, 200, 100) == (100, 50, 1, 1)

    def test_bounding_box_clamped_to_frame(self, make_face):
        face = face_over_box(make_face, -0.1, 0.5, 1.2, 1.5)
        assert face_bounding_box(face, 100, 100) == (0, 50, 100, 50)

    def test_bounding_box_cut_at_left_edge(self, make_face):
        # Лицо частично за левым краем: рамка обрезается, а не сдвигается
        face = face_over_box(make_face, -0.1, 0.2, 0.5, 0.6)
        assert face_bounding_box(face, 100, 100) == (0, 20, 50, 40)

    def test_bounding_box_fully_outside(self, make_face):
        face = face_over_box(make_face, 1.2, 0.2, 1.4, 0.6)
        assert face_bounding_box(face, 100, 100) == (99, 20, 1, 40)


class TestTZone:
    def landmarks(self, make_face):
        return make_face({FOREHEAD_IDX: (0.5, 0.1), LEFT_CHEEK_IDX: (0.2, 0.6), RIGHT_CHEEK_IDX: (0.8, 0.6)})

    def test_pronounced(self, make_face, make_frame):
        frame = make_frame(100, 100, (100, 100, 100))
        frame[10, 50] = (130, 130, 130, 255)
        assert estimate_tzone(self.landmarks(make_face), frame) == "Pronounced T-zone"

    def test_balanced(self, make_face, make_frame):
        frame = make_frame(100, 100, (100, 100, 100))
        frame[10, 50] = (108, 108, 108, 255)
        assert estimate_tzone(self.landmarks(make_face), frame) == "Balanced / Mild T-zone"


class TestRecommendations:
    def test_dry(self):
        recs = build_recommendations("Dry", "Low / None")
        assert "Apply thick moisturizer with ceramides." in recs
        assert len(recs) == 3

    def test_acne_adds_dermatologist(self):
        recs = build_recommendations("Normal / Combination", "High")
        assert recs[-1].startswith("Consult dermatologist")
        assert len(recs) == 3


class TestSkinAnalyzer:
    def test_uniform_gray_face(self, make_face, make_frame):
        frame = make_frame(200, 200, (100, 100, 100))
        face = face_over_box(make_face, 0.25, 0.25, 0.75, 0.75)

        result = SkinAnalyzer().analyze(face, frame)

        assert result.tone == "Medium"
        # Нулевой контраст < 35 -> Dry, порядок проверок важен
        assert result.skin_type == "Dry"
        assert result.acne == "Low / None"
        assert result.tzone == "Balanced / Mild T-zone"
        assert result.recommendations == build_recommendations("Dry", "Low / None")

    def test_face_at_edge_ignores_background(self, make_face, make_frame):
        frame = make_frame(100, 100, (100, 100, 100))
        frame[:, 50:] = (255, 255, 255, 255)
        face = face_over_box(make_face, -0.1, 0.2, 0.5, 0.6)

        result = SkinAnalyzer().analyze(face, frame)
        assert result.skin_type == "Dry"
        assert result.tone == "Medium"

    def test_red_spots_in_face_box(self, make_face, make_frame):
        frame = make_frame(100, 100, (120, 100, 90))
        frame[20:30, 20:30] = (220, 60, 60, 255)
        face = face_over_box(make_face, 0.1, 0.1, 0.6, 0.6)

        result = SkinAnalyzer().analyze(face, frame)
        # 100 красных пикселей на ~2500 -> около 0.04
        assert result.acne == "Moderate"

    def test_rate_limit(self, make_face, make_frame):
        frame = make_frame(50, 50, (100, 100, 100))
        face = face_over_box(make_face, 0.2, 0.2, 0.8, 0.8)
        analyzer = SkinAnalyzer()

        assert analyzer.analyze_if_needed(face, frame, now_ms=10_000) is not None
        assert analyzer.analyze_if_needed(face, frame, now_ms=11_999) is None
        assert analyzer.analyze_if_needed(face, frame, now_ms=12_000) is not None
        assert analyzer.last_result is not None

    def test_no_face_is_noop(self, make_frame):
        analyzer = SkinAnalyzer()
        assert analyzer.analyze_if_needed(None, make_frame(10, 10, (0, 0, 0)), now_ms=0) is None
        assert analyzer.analyze_if_needed((), make_frame(10, 10, (0, 0, 0)), now_ms=0) is None
        assert analyzer.last_analysis_ms is None
