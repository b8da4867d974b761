"""Tests for the Service builder and endpoint resolution."""

from resources.service import build_service, resolve_endpoint

META = {"name": "orders", "namespace": "kafka", "uid": "uid-1"}


def make_spec(**overrides):
    spec = {
        "kafka": {"bootstrapServers": ["kafka:9092"]},
        "mapping": {"virtualPartitions": 1000, "physicalPartitions": 100},
    }
    spec.update(overrides)
    return spec


def live_service(service_type, ingress=None):
    service = {
        "metadata": {"name": "orders", "namespace": "kafka"},
        "spec": {"type": service_type},
    }
    if ingress is not None:
        service["status"] = {"loadBalancer": {"ingress": ingress}}
    return service


class TestBuildService:
    """Tests for build_service function."""

    def test_defaults(self):
        service = build_service(make_spec(), META)

        assert service["apiVersion"] == "v1"
        assert service["kind"] == "Service"
        assert service["metadata"]["name"] == "orders"
        assert "annotations" not in service["metadata"]
        assert service["spec"]["type"] == "ClusterIP"
        assert service["spec"]["selector"] == service["metadata"]["labels"]
        assert service["spec"]["ports"] == [
            {"name": "kafka", "port": 9092, "targetPort": "kafka", "protocol": "TCP"},
            {"name": "metrics", "port": 9090, "targetPort": "metrics", "protocol": "TCP"},
        ]
        assert "loadBalancerIP" not in service["spec"]
        assert "externalTrafficPolicy" not in service["spec"]

    def test_load_balancer_options(self):
        spec = make_spec(
            service={
                "type": "LoadBalancer",
                "annotations": {"service.beta.kubernetes.io/aws-load-balancer-type": "nlb"},
                "loadBalancerIP": "10.0.0.5",
                "externalTrafficPolicy": "Local",
            }
        )
        service = build_service(spec, META)

        assert service["spec"]["type"] == "LoadBalancer"
        assert service["spec"]["loadBalancerIP"] == "10.0.0.5"
        assert service["spec"]["externalTrafficPolicy"] == "Local"
        assert service["metadata"]["annotations"] == {
            "service.beta.kubernetes.io/aws-load-balancer-type": "nlb"
        }

    def test_custom_ports(self):
        spec = make_spec(listen={"port": 19092}, metrics={"port": 19090})
        ports = build_service(spec, META)["spec"]["ports"]

        assert [p["port"] for p in ports] == [19092, 19090]

    def test_idempotent(self):
        assert build_service(make_spec(), META) == build_service(make_spec(), META)


class TestResolveEndpoint:
    """Tests for resolve_endpoint function."""

    def test_cluster_ip(self):
        assert (
            resolve_endpoint(live_service("ClusterIP"), make_spec())
            == "orders.kafka.svc.cluster.local:9092"
        )

    def test_node_port_uses_cluster_dns(self):
        assert (
            resolve_endpoint(live_service("NodePort"), make_spec())
            == "orders.kafka.svc.cluster.local:9092"
        )

    def test_scenario_pending_load_balancer(self):
        endpoint = resolve_endpoint(live_service("LoadBalancer"), make_spec())

        assert endpoint == "orders.kafka.svc.cluster.local:9092"

    def test_load_balancer_empty_ingress(self):
        endpoint = resolve_endpoint(live_service("LoadBalancer", ingress=[]), make_spec())

        assert endpoint == "orders.kafka.svc.cluster.local:9092"

    def test_load_balancer_ip(self):
        service = live_service(
            "LoadBalancer", ingress=[{"ip": "203.0.113.7", "hostname": "lb.example.com"}]
        )

        assert resolve_endpoint(service, make_spec()) == "203.0.113.7:9092"

    def test_load_balancer_hostname(self):
        service = live_service("LoadBalancer", ingress=[{"hostname": "lb.example.com"}])

        assert resolve_endpoint(service, make_spec()) == "lb.example.com:9092"

    def test_uses_listen_port(self):
        endpoint = resolve_endpoint(live_service("ClusterIP"), make_spec(listen={"port": 19092}))

        assert endpoint.endswith(":19092")
