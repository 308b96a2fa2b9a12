"""
Tests for the manifest module.

Covers: label merging, network attachment, the patch operation and its
invariants, manifest discovery, loading and saving.

Copyright (c) 2026 Snapp'
Author: Yannis Duvignau (yduvignau@snapp.fr)
"""

import copy

import pytest

from eurus.exceptions import (
    DocumentError,
    InvalidDocumentSyntax,
    MissingManifestFile,
    MissingService,
    ValidationError,
)
from eurus.manifest import (
    add_label_if_absent,
    attach_network,
    dump_manifest,
    find_manifest,
    load_manifest,
    parse_manifest,
    patch_manifest,
    routable_services,
    save_manifest,
)


# ========= add_label_if_absent ============


class TestAddLabelIfAbsent:
    """Tests for set-if-absent label merging on both representations."""

    def test_list_appends_new_label(self):
        labels = ["a=1"]
        assert add_label_if_absent(labels, "b", "2") is True
        assert labels == ["a=1", "b=2"]

    def test_list_keeps_existing_value(self):
        labels = ["traefik.enable=false"]
        assert add_label_if_absent(labels, "traefik.enable", "true") is False
        assert labels == ["traefik.enable=false"]

    def test_list_matches_on_full_key(self):
        labels = ["caddy.reverse_proxy={{upstreams}}"]
        assert add_label_if_absent(labels, "caddy", "example.com") is True
        assert labels[-1] == "caddy=example.com"

    def test_list_entry_without_value(self):
        labels = ["flag"]
        assert add_label_if_absent(labels, "flag", "yes") is False
        assert labels == ["flag"]

    def test_mapping_adds_new_label(self):
        labels = {"a": "1"}
        assert add_label_if_absent(labels, "b", "2") is True
        assert labels == {"a": "1", "b": "2"}

    def test_mapping_keeps_existing_value(self):
        labels = {"traefik.enable": "false"}
        assert add_label_if_absent(labels, "traefik.enable", "true") is False
        assert labels == {"traefik.enable": "false"}


# ========= attach_network ============


class TestAttachNetwork:
    """Tests for network attachment on both representations."""

    def test_list_appends(self):
        networks = ["default"]
        assert attach_network(networks, "edge") is True
        assert networks == ["default", "edge"]

    def test_list_no_duplicate(self):
        networks = ["edge"]
        assert attach_network(networks, "edge") is False
        assert networks == ["edge"]

    def test_mapping_adds_empty_entry(self):
        networks = {"default": {"aliases": ["www"]}}
        assert attach_network(networks, "edge") is True
        assert networks == {"default": {"aliases": ["www"]}, "edge": None}

    def test_mapping_keeps_existing_settings(self):
        networks = {"edge": {"ipv4_address": "10.0.0.2"}}
        assert attach_network(networks, "edge") is False
        assert networks == {"edge": {"ipv4_address": "10.0.0.2"}}


# ========= patch_manifest ============


class TestPatchManifest:
    """Tests for the patch operation."""

    def test_basic_scenario(self):
        document = {"services": {"web": {"labels": [], "networks": []}}, "networks": {}}

        result = patch_manifest(document, "web", "edge", [("caddy", "example.com")])

        assert result == {
            "services": {"web": {"labels": ["caddy=example.com"], "networks": ["edge"]}},
            "networks": {"edge": {"external": True}},
        }

    def test_rerun_is_stable(self):
        document = {"services": {"web": {"labels": [], "networks": []}}, "networks": {}}
        directives = [("caddy", "example.com")]

        once = patch_manifest(document, "web", "edge", directives)
        twice = patch_manifest(once, "web", "edge", directives)

        assert twice == once

    def test_idempotent_with_mapping_forms(self):
        document = {
            "services": {"web": {"labels": {"x": "1"}, "networks": {"default": None}}},
            "networks": {"default": None},
        }
        directives = [("traefik.enable", "true"), ("traefik.docker.network", "proxy")]

        once = patch_manifest(document, "web", "proxy", directives)
        twice = patch_manifest(once, "web", "proxy", directives)

        assert twice == once
        assert once["services"]["web"]["labels"] == {
            "x": "1",
            "traefik.enable": "true",
            "traefik.docker.network": "proxy",
        }
        assert once["services"]["web"]["networks"] == {"default": None, "proxy": None}

    def test_new_directive_added_on_later_run(self):
        document = {"services": {"web": {"labels": [], "networks": []}}, "networks": {}}
        once = patch_manifest(document, "web", "edge", [("caddy", "example.com")])

        twice = patch_manifest(
            once, "web", "edge",
            [("caddy", "example.com"), ("caddy.reverse_proxy", "{{upstreams 8080}}")],
        )

        assert twice["services"]["web"]["labels"] == [
            "caddy=example.com",
            "caddy.reverse_proxy={{upstreams 8080}}",
        ]

    def test_set_if_absent_keeps_existing_value(self):
        document = {"services": {"web": {"labels": {"caddy": "old.example.com"}}}}

        result = patch_manifest(document, "web", "edge", [("caddy", "new.example.com")])

        assert result["services"]["web"]["labels"]["caddy"] == "old.example.com"

    def test_duplicate_directive_keys_first_wins(self):
        document = {"services": {"web": {"labels": []}}}

        result = patch_manifest(
            document, "web", "edge",
            [("caddy", "first.example.com"), ("caddy", "second.example.com")],
        )

        assert result["services"]["web"]["labels"] == ["caddy=first.example.com"]

    def test_non_interference(self, compose_document):
        original = copy.deepcopy(compose_document)

        result = patch_manifest(compose_document, "web", "proxy", [("traefik.enable", "true")])

        for name in ("db", "placeholder"):
            assert result["services"][name] == original["services"][name]
        assert result["networks"]["default"] == original["networks"]["default"]
        assert result["volumes"] == original["volumes"]
        assert result["name"] == original["name"]
        assert list(result["services"]) == list(original["services"])

    def test_input_document_not_mutated(self, compose_document):
        original = copy.deepcopy(compose_document)

        patch_manifest(compose_document, "web", "proxy", [("traefik.enable", "true")])

        assert compose_document == original

    def test_network_created_as_external(self, compose_document):
        result = patch_manifest(compose_document, "web", "proxy", [])

        assert result["networks"]["proxy"] == {"external": True}
        assert "proxy" in result["services"]["web"]["networks"]

    def test_network_placeholder_materialized(self):
        document = {"services": {"web": {"image": "nginx"}}, "networks": {"proxy": None}}

        result = patch_manifest(document, "web", "proxy", [])

        assert result["networks"]["proxy"] == {"external": True}

    def test_network_settings_preserved(self):
        document = {
            "services": {"web": {"image": "nginx"}},
            "networks": {"proxy": {"name": "traefik_proxy", "driver": "bridge"}},
        }

        result = patch_manifest(document, "web", "proxy", [])

        assert result["networks"]["proxy"] == {
            "name": "traefik_proxy",
            "driver": "bridge",
            "external": True,
        }

    def test_network_external_flag_not_overwritten(self):
        document = {
            "services": {"web": {"image": "nginx"}},
            "networks": {"proxy": {"external": False, "driver": "overlay"}},
        }

        result = patch_manifest(document, "web", "proxy", [])

        assert result["networks"]["proxy"] == {"external": False, "driver": "overlay"}

    def test_network_null_external_flag_set(self):
        document = {
            "services": {"web": {"image": "nginx"}},
            "networks": {"proxy": {"external": None}},
        }

        result = patch_manifest(document, "web", "proxy", [])

        assert result["networks"]["proxy"] == {"external": True}
        assert document["networks"]["proxy"] == {"external": None}

    def test_missing_networks_table_created(self):

        document = {"services": {"web": {"image": "nginx"}}}

        result = patch_manifest(document, "web", "proxy", [("a", "b")])

        assert result["networks"] == {"proxy": {"external": True}}
        assert result["services"]["web"]["labels"] == ["a=b"]
        assert result["services"]["web"]["networks"] == ["proxy"]

    def test_network_settings_factory_used(self):
        document = {"services": {"web": {"image": "nginx"}}}

        result = patch_manifest(
            document, "web", "proxy", [],
            network_settings_factory=lambda: {"name": "shared"},
        )

        assert result["networks"]["proxy"] == {"name": "shared", "external": True}

    def test_attachment_not_duplicated(self):
        document = {"services": {"web": {"networks": ["proxy", "default"]}}}

        result = patch_manifest(document, "web", "proxy", [])

        assert result["services"]["web"]["networks"] == ["proxy", "default"]

    def test_missing_service_raises(self, compose_document):
        with pytest.raises(MissingService) as exc_info:
            patch_manifest(compose_document, "api", "proxy", [])

        assert exc_info.value.service_name == "api"

    def test_null_service_raises(self, compose_document):
        with pytest.raises(MissingService):
            patch_manifest(compose_document, "placeholder", "proxy", [])

    def test_no_services_raises(self):
        with pytest.raises(MissingService):
            patch_manifest({"version": "3"}, "web", "proxy", [])

    def test_empty_network_name_rejected(self, compose_document):
        with pytest.raises(ValidationError):
            patch_manifest(compose_document, "web", "", [])

    def test_invalid_labels_shape(self):
        document = {"services": {"web": {"labels": "oops"}}}
        with pytest.raises(InvalidDocumentSyntax):
            patch_manifest(document, "web", "proxy", [])


class TestRoutableServices:
    """Tests for listing services that can be patched."""

    def test_skips_null_services(self, compose_document):
        assert routable_services(compose_document) == ["web", "db"]

    def test_no_services(self):
        assert routable_services({"networks": {}}) == []


# ========= File I/O ============


class TestFindManifest:
    """Tests for manifest discovery."""

    def test_explicit_path(self, compose_file):
        assert find_manifest(str(compose_file)) == compose_file

    def test_explicit_path_missing(self, tmp_path):
        with pytest.raises(MissingManifestFile):
            find_manifest(tmp_path / "nope.yaml")

    def test_default_candidate(self, tmp_path):
        (tmp_path / "docker-compose.yaml").write_text("services: {}\n")
        assert find_manifest(cwd=tmp_path) == tmp_path / "docker-compose.yaml"

    def test_prefers_compose_yaml(self, tmp_path):
        (tmp_path / "docker-compose.yaml").write_text("services: {}\n")
        (tmp_path / "compose.yaml").write_text("services: {}\n")
        assert find_manifest(cwd=tmp_path) == tmp_path / "compose.yaml"

    def test_no_candidate(self, tmp_path):
        with pytest.raises(MissingManifestFile):
            find_manifest(cwd=tmp_path)

    def test_missing_manifest_is_document_error(self, tmp_path):
        with pytest.raises(DocumentError):
            find_manifest(cwd=tmp_path)


class TestLoadManifest:
    """Tests for manifest parsing."""

    def test_load(self, compose_file):
        document = load_manifest(compose_file)
        assert document["services"]["web"]["labels"] == {"com.example.team": "ops"}
        assert document["networks"] == {"default": None}

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "compose.yaml"
        path.write_text("services:\n  web: [unclosed\n")
        with pytest.raises(InvalidDocumentSyntax):
            load_manifest(path)

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "compose.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(InvalidDocumentSyntax):
            load_manifest(path)

    def test_unreadable(self, tmp_path):
        with pytest.raises(DocumentError):
            load_manifest(tmp_path / "missing.yaml")


class TestSaveManifest:
    """Tests for writing the manifest back."""

    def test_round_trip_preserves_unrelated_fields(self, compose_file):
        document = load_manifest(compose_file)
        patched = patch_manifest(document, "web", "proxy", [("traefik.enable", "true")])

        save_manifest(compose_file, patched, backup=False)
        reloaded = load_manifest(compose_file)

        assert reloaded == patched
        assert reloaded["services"]["db"] == document["services"]["db"]
        assert reloaded["volumes"] == {"data": None}
        assert reloaded["services"]["web"]["networks"] == {
            "default": {"aliases": ["www"]},
            "proxy": None,
        }

    def test_backup_written(self, compose_file):
        original = compose_file.read_text()
        document = load_manifest(compose_file)

        backup_path = save_manifest(compose_file, document, backup=True)

        assert backup_path == compose_file.with_name("compose.yaml.bak")
        assert backup_path.read_text() == original

    def test_no_backup(self, compose_file):
        assert save_manifest(compose_file, load_manifest(compose_file), backup=False) is None
        assert not compose_file.with_name("compose.yaml.bak").exists()

    def test_dump_keeps_key_order(self):
        text = dump_manifest({"services": {}, "networks": {}, "name": "x"})
        assert [line.split(":")[0] for line in text.splitlines()] == ["services", "networks", "name"]

    def test_dump_is_valid_yaml(self, compose_document):
        assert parse_manifest(dump_manifest(compose_document)) == compose_document

    def test_untouched_services_keep_their_scalars_and_comments(self, tmp_path):
        path = tmp_path / "compose.yaml"
        path.write_text(
            "services:\n"
            "  web:\n"
            "    image: nginx\n"
            "  # resolver for the internal zone\n"
            "  dns:\n"
            "    image: coredns/coredns\n"
            "    ports:\n"
            "      - 53:53\n"
            "      - 53:53/udp\n"
            "    environment:\n"
            "      DEBUG: yes\n"
        )

        patched = patch_manifest(load_manifest(path), "web", "proxy", [("traefik.enable", "true")])
        save_manifest(path, patched, backup=False)

        text = path.read_text()
        assert "- 53:53\n" in text
        assert "- 53:53/udp" in text
        assert "DEBUG: yes" in text
        assert "# resolver for the internal zone" in text
        assert "traefik.enable=true" in text

        dns = load_manifest(path)["services"]["dns"]
        assert dns["ports"] == ["53:53", "53:53/udp"]
        assert dns["environment"]["DEBUG"] == "yes"
