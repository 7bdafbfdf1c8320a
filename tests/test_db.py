"""Tests for NetworkDB saved-network storage."""

import pytest

from movienet.errors import DocumentIntegrityError, NetworkNotFoundError
from movienet.models import NetworkDocument, NetworkEdge
from movienet.serialization import from_persistable_document, to_persistable_document


class TestSaveAndLoad:
    def test_save_then_load_round_trip(self, tmp_db, sample_network):
        document = to_persistable_document(sample_network, name="Nolan", description="Five films")
        network_id = tmp_db.save_network(document)

        loaded = tmp_db.get_network(network_id)
        assert loaded is not None
        assert loaded.name == "Nolan"
        assert loaded.description == "Five films"

        restored = from_persistable_document(loaded)
        assert len(restored) == 5
        assert len(restored.edges) == 4
        assert restored.get_node("4").depth == 2

    def test_get_unknown(self, tmp_db):
        assert tmp_db.get_network("missing") is None
        assert tmp_db.get_network_summary("missing") is None

    def test_metadata_stamped_on_save(self, tmp_db, sample_network):
        document = to_persistable_document(sample_network, name="Nolan").model_copy(update={"metadata": None})
        network_id = tmp_db.save_network(document)

        summary = tmp_db.get_network_summary(network_id)
        assert summary.seed_movie == "The Dark Knight"
        assert summary.metadata.total_movies == 5
        assert summary.metadata.total_connections == 4
        assert summary.metadata.max_depth == 2
        assert summary.metadata.average_rating == 8.5
        assert summary.metadata.genres == ["action", "drama"]

    def test_inconsistent_document_not_stored(self, tmp_db, sample_network):
        document = to_persistable_document(sample_network, name="Broken")
        document.edges.append(NetworkEdge(source="1", target="404"))
        with pytest.raises(DocumentIntegrityError):
            tmp_db.save_network(document)
        assert tmp_db.count_networks() == 0

    def test_reload_then_remove_non_seed(self, tmp_db, sample_network):
        network_id = tmp_db.save_network(to_persistable_document(sample_network, name="Nolan"))

        restored = from_persistable_document(tmp_db.get_network(network_id))
        assert restored.seed.id == sample_network.seed.id
        assert restored.remove_node("2") is not None

        assert len(restored) == 4
        assert len(restored.edges) == 4 - 2
        assert restored.seed.id == "1"


class TestUpdate:
    def test_update_replaces_document(self, tmp_db, sample_network):
        network_id = tmp_db.save_network(to_persistable_document(sample_network, name="Nolan"))
        sample_network.remove_node("9")
        tmp_db.update_network(network_id, to_persistable_document(sample_network, name="Nolan"))

        summary = tmp_db.get_network_summary(network_id)
        assert summary.metadata.total_movies == 4
        assert tmp_db.count_networks() == 1

    def test_update_unknown_raises(self, tmp_db, sample_network):
        with pytest.raises(NetworkNotFoundError):
            tmp_db.update_network("missing", to_persistable_document(sample_network))

    def test_save_by_name_creates_then_updates(self, tmp_db, sample_network):
        first_id, created = tmp_db.save_or_update_by_name(to_persistable_document(sample_network, name="Nolan"))
        assert created

        sample_network.remove_node("3")
        second_id, created = tmp_db.save_or_update_by_name(to_persistable_document(sample_network, name="Nolan"))
        assert not created
        assert second_id == first_id
        assert tmp_db.count_networks() == 1
        assert len(tmp_db.get_network(first_id).nodes) == 4


class TestListAndDelete:
    def test_list_newest_first_without_payload(self, tmp_db, sample_network):
        tmp_db.save_network(to_persistable_document(sample_network, name="First"))
        tmp_db.save_network(to_persistable_document(sample_network, name="Second"))

        networks = tmp_db.list_networks()
        assert [n.name for n in networks] == ["Second", "First"]
        assert not hasattr(networks[0], "nodes")
        assert networks[0].metadata.total_movies == 5

    def test_list_empty(self, tmp_db):
        assert tmp_db.list_networks() == []

    def test_delete(self, tmp_db, sample_network):
        network_id = tmp_db.save_network(to_persistable_document(sample_network))
        assert tmp_db.delete_network(network_id) is True
        assert tmp_db.get_network(network_id) is None
        assert tmp_db.delete_network(network_id) is False

    def test_empty_network_document(self, tmp_db):
        network_id = tmp_db.save_network(NetworkDocument(name="Empty"))
        summary = tmp_db.get_network_summary(network_id)
        assert summary.metadata.total_movies == 0
        assert summary.metadata.average_rating is None
        assert summary.seed_movie is None


class TestSessionLifecycle:
    def test_save_clear_load(self, tmp_db, fake_source):
        """Grow a network, save it, clear, then load it back."""
        import asyncio

        from movienet.controller import NetworkController

        controller = NetworkController(fake_source)

        async def grow():
            await controller.search_and_add_movie("The Dark Knight")
            await controller.expand_node("1")

        asyncio.run(grow())
        controller.set_color_mode("decade")
        controller.toggle_category_filter("1990s")
        network_id, _ = tmp_db.save_or_update_by_name(controller.to_document(name="Session"))

        controller.clear()
        assert len(controller.network) == 0

        controller.load_document(tmp_db.get_network(network_id))
        assert len(controller.network) == 6
        assert len(controller.network.edges) == 5
        assert controller.hidden_categories == {"1990s"}
        assert "6" not in {n.id for n in controller.visible_nodes()}
