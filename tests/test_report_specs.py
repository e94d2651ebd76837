"""Report catalogue, manifest and utility tests."""
from datetime import datetime, timezone

import pytest

from pipeline.models import Manifest, ManifestEntry
from pipeline.report_specs import ALL_CATEGORIES, VARIANTS, get_report_specs
from shared.exceptions import ConfigurationError
from shared.utils import calculate_progress, estimate_page_count, generate_job_id


class TestReportSpecs:
    """Tests for the report catalogues."""

    def test_variant_sizes(self):
        """Test the essentials and full catalogues."""
        assert len(get_report_specs("essentials")) == 8
        assert len(get_report_specs("full")) == 17

    @pytest.mark.parametrize("variant", sorted(VARIANTS))
    def test_report_types_unique(self, variant):
        """Test no catalogue names a report type twice."""
        types = [spec.report_type for spec in get_report_specs(variant)]
        assert len(types) == len(set(types))

    def test_essentials_is_subset_of_full(self):
        """Test every essentials report is also in the full catalogue."""
        full = {spec.report_type for spec in get_report_specs("full")}
        assert {spec.report_type for spec in get_report_specs("essentials")} <= full

    def test_comprehensive_first(self):
        """Test both catalogues start with the comprehensive report."""
        for variant in VARIANTS:
            assert get_report_specs(variant)[0].report_type == "comprehensive"

    def test_focus_uses_known_categories(self):
        """Test specs only reference known category codes."""
        for spec in get_report_specs("full"):
            assert set(spec.category_focus) <= set(ALL_CATEGORIES)
            assert spec.sections

    def test_unknown_variant(self):
        """Test an unknown variant is a configuration error."""
        with pytest.raises(ConfigurationError):
            get_report_specs("premium")


class TestCalculateProgress:
    """Tests for calculate_progress function."""

    @pytest.mark.parametrize("completed,total,expected", [
        (1, 3, 33),
        (2, 3, 67),
        (3, 3, 100),
        (1, 8, 13),
        (1, 2, 50),
        (0, 0, 100),
    ])
    def test_rounding(self, completed, total, expected):
        """Test progress is rounded half up."""
        assert calculate_progress(completed, total) == expected

    def test_strictly_increasing(self):
        """Test each stage of a full run raises progress."""
        values = [calculate_progress(i, 17) for i in range(1, 18)]
        assert all(b > a for a, b in zip(values, values[1:]))
        assert values[-1] == 100


def test_estimate_page_count():
    """Test page estimates round up."""
    assert estimate_page_count("x" * 3000) == 1
    assert estimate_page_count("x" * 3001) == 2
    assert estimate_page_count("x" * 50, chars_per_page=10) == 5


def test_generate_job_id():
    """Test job IDs are prefixed and unique."""
    first, second = generate_job_id(), generate_job_id()
    assert first.startswith("job_")
    assert first != second


class TestManifest:
    """Tests for Manifest class."""

    def test_add_replaces_same_report_type(self):
        """Test a report type appears at most once."""
        when = datetime(2024, 2, 4, tzinfo=timezone.utc)
        manifest = Manifest(job_id="job_1", submission_ref="sub_001")
        manifest.add(ManifestEntry("owner", "Owner", 3, when, 10))
        manifest.add(ManifestEntry("employees", "Employees", 1, when, 5))
        manifest.add(ManifestEntry("owner", "Owner", 4, when, 20))

        assert manifest.report_types == ["owner", "employees"]
        assert manifest.total_pages == 5
        assert manifest.tokens_used == 25

    def test_to_dict(self):
        """Test the manifest document layout."""
        when = datetime(2024, 2, 4, 10, 32, tzinfo=timezone.utc)
        manifest = Manifest(job_id="job_1", submission_ref="sub_001", model_used="m", processed_at=when)
        manifest.add(ManifestEntry("owner", "Owner", 3, when))

        assert manifest.to_dict() == {
            "jobId": "job_1",
            "submissionId": "sub_001",
            "reports": [{
                "reportType": "owner",
                "title": "Owner",
                "pageCount": 3,
                "generatedAt": "2024-02-04T10:32:00+00:00"
            }],
            "metadata": {
                "processedAt": "2024-02-04T10:32:00+00:00",
                "totalArtifacts": 1,
                "totalPages": 3,
                "modelUsed": "m",
                "tokensUsed": 0
            }
        }
