"""Tests for the CRD manifest and the CLI."""

import io

import yaml

from cli import main, print_crds
from crd import build_crd, crd_manifests


def version_entry():
    return build_crd()["spec"]["versions"][0]


class TestBuildCrd:
    """Tests for build_crd function."""

    def test_names(self):
        crd = build_crd()

        assert crd["apiVersion"] == "apiextensions.k8s.io/v1"
        assert crd["metadata"]["name"] == "kafkapartitionremappers.kafka.oso.sh"
        assert crd["spec"]["group"] == "kafka.oso.sh"
        assert crd["spec"]["scope"] == "Namespaced"
        assert crd["spec"]["names"]["kind"] == "KafkaPartitionRemapper"
        assert crd["spec"]["names"]["shortNames"] == ["kpr"]

    def test_version(self):
        entry = version_entry()

        assert entry["name"] == "v1alpha1"
        assert entry["served"] is True
        assert entry["storage"] is True
        assert entry["subresources"] == {"status": {}}

    def test_printer_columns(self):
        columns = [c["name"] for c in version_entry()["additionalPrinterColumns"]]

        assert columns == ["Phase", "Ready", "Replicas", "Endpoint", "Ratio", "Age"]

    def test_printer_column_types(self):
        types = {c["name"]: c["type"] for c in version_entry()["additionalPrinterColumns"]}

        assert types == {
            "Phase": "string",
            "Ready": "integer",
            "Replicas": "integer",
            "Endpoint": "string",
            "Ratio": "integer",
            "Age": "date",
        }

    def test_spec_schema(self):
        spec = version_entry()["schema"]["openAPIV3Schema"]["properties"]["spec"]

        assert spec["required"] == ["kafka", "mapping"]
        assert spec["properties"]["replicas"]["default"] == 1
        assert spec["properties"]["mapping"]["required"] == [
            "virtualPartitions",
            "physicalPartitions",
        ]
        assert spec["properties"]["kafka"]["properties"]["securityProtocol"]["enum"] == [
            "PLAINTEXT",
            "SSL",
            "SASL_PLAINTEXT",
            "SASL_SSL",
        ]

    def test_opaque_fields_preserved(self):
        spec = version_entry()["schema"]["openAPIV3Schema"]["properties"]["spec"]
        pod_template = spec["properties"]["podTemplate"]["properties"]

        assert pod_template["affinity"]["x-kubernetes-preserve-unknown-fields"] is True
        assert pod_template["securityContext"]["x-kubernetes-preserve-unknown-fields"] is True

    def test_manifests(self):
        assert crd_manifests() == [build_crd()]


class TestCli:
    """Tests for the crd subcommand."""

    def test_print_crds(self):
        stream = io.StringIO()
        print_crds(stream)
        output = stream.getvalue()

        assert output.startswith("---\n")
        documents = [d for d in yaml.safe_load_all(output) if d]
        assert documents == crd_manifests()

    def test_crd_subcommand(self, capsys):
        assert main(["crd"]) == 0

        output = capsys.readouterr().out
        assert output.startswith("---\n")
        assert "kind: CustomResourceDefinition" in output
