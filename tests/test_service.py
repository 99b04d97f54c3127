"""
Tests for the visualization service.
"""

import pytest

from services.visualization import VisualizationService
from services.visualization.models import VisualizationType
from services.visualization.session import VisualizationSession


@pytest.fixture
def service():
    return VisualizationService()


class TestProcessVisualizationRequest:

    def test_selects_and_mounts(self, service, session, meetings, people):
        success, result = service.process_visualization_request("general_query", {"meetings": meetings, "people": people}, session)

        assert success
        assert [d.type for d in result["descriptors"]] == [VisualizationType.TIMELINE, VisualizationType.COLLABORATION]
        assert len(result["fragments"]) == 2
        assert result["visualization_count"] == 2

    def test_no_visualizations(self, service, session):
        success, result = service.process_visualization_request("find_people", {"people": [{"id": "a"}]}, session)

        assert success
        assert result["fragments"] == []
        assert service.describe(result["descriptors"]) == "No visualizations for this result."

    def test_render_errors_are_reported(self, service, meetings):
        class BrokenSession(VisualizationSession):
            def mount(self, descriptors, mount):
                raise RuntimeError("boom")

        success, message = service.process_visualization_request("meeting_frequency", {"meetings": meetings},
                                                                 BrokenSession())
        assert not success
        assert "boom" in message

    def test_describe(self, service, session, people):
        _, result = service.process_visualization_request("organization_hierarchy", {"people": people}, session)
        assert service.describe(result["descriptors"]) == "Showing 1 visualization: Organization Structure"


class TestValidateResultSet:

    def test_blank_is_empty_result_set(self, service):
        assert service.validate_result_set("") == (True, {})
        assert service.validate_result_set(None) == (True, {})

    def test_parses_object(self, service):
        assert service.validate_result_set('{"people": [{"id": "a"}]}') == (True, {"people": [{"id": "a"}]})

    @pytest.mark.parametrize("raw", ["{not json", "[1, 2]"])
    def test_rejects_invalid(self, service, raw):
        valid, message = service.validate_result_set(raw)
        assert not valid
        assert isinstance(message, str)

    def test_supported_visualizations(self, service):
        assert "timeline" in service.get_supported_visualizations()
