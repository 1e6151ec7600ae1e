import json

import pytest
from pydantic import ValidationError

from acmeauth.federation import ClientMetadataRegistry
from acmeauth.models.request import ClientMetadata


class TestClientMetadataRegistry:
    def test_default_registry_knows_aua_example(self):
        """Test default registry knows aua example."""
        registry = ClientMetadataRegistry.default()

        metadata = registry.lookup("aua.example")

        assert metadata is not None
        assert metadata.display_name == "Aua.App: Pain Diary"
        assert "aua.example" in registry

    def test_lookup_of_unknown_client_returns_none(self):
        """Test lookup of unknown client returns none."""
        assert ClientMetadataRegistry.default().lookup("nobody.example") is None

    def test_duplicate_entries_keep_last(self):
        """Test duplicate entries keep last."""
        registry = ClientMetadataRegistry(
            [
                ClientMetadata(id="a", display_name="First"),
                ClientMetadata(id="a", display_name="Second"),
            ]
        )

        assert len(registry) == 1
        assert registry.lookup("a").display_name == "Second"

    def test_from_file_reads_json_entries(self, tmp_path):
        """Test from file reads json entries."""
        # Arrange
        path = tmp_path / "clients.json"
        path.write_text(
            json.dumps(
                [
                    {
                        "id": "diary.example",
                        "name": "Diary",
                        "icon_uri": "https://diary.example/icon.png",
                    },
                    {"id": "notes.example", "name": "Notes"},
                ]
            )
        )

        # Act
        registry = ClientMetadataRegistry.from_file(path)

        # Assert
        assert len(registry) == 2
        assert registry.lookup("diary.example").icon_uri == (
            "https://diary.example/icon.png"
        )
        assert registry.lookup("notes.example").icon_uri is None


class TestClientMetadata:
    def test_accepts_name_alias_and_field_name(self):
        """Test accepts name alias and field name."""
        by_alias = ClientMetadata.model_validate({"id": "a", "name": "App"})
        by_name = ClientMetadata(id="a", display_name="App")

        assert by_alias == by_name

    def test_rejects_non_http_icon_uri(self):
        """Test rejects non http icon uri."""
        with pytest.raises(ValidationError):
            ClientMetadata(id="a", display_name="App", icon_uri="file:///icon.png")

    def test_metadata_is_immutable(self):
        """Test metadata is immutable."""
        metadata = ClientMetadata(id="a", display_name="App")

        with pytest.raises(ValidationError):
            metadata.display_name = "Other"
