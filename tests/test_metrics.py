from brupop.metrics import (
    HOSTS_STATE_METRIC,
    HOSTS_VERSION_METRIC,
    ControllerMetrics,
    HostsData,
)


def _metrics_with(versions, states):
    metrics = ControllerMetrics()
    metrics.emit_metrics(HostsData(versions, states))
    return metrics


def test_new_metrics_have_no_samples():
    metrics = ControllerMetrics()
    assert metrics.samples() == []
    assert metrics.render() == ""


def test_samples_reflect_emitted_data():
    metrics = _metrics_with({"1.8.0": 2}, {"Idle": 3})
    assert metrics.samples() == [
        (HOSTS_VERSION_METRIC, {"bottlerocket_version": "1.8.0"}, 2),
        (HOSTS_STATE_METRIC, {"state": "Idle"}, 3),
    ]


def test_emit_replaces_previous_data():
    metrics = _metrics_with({"1.8.0": 2}, {"Idle": 2})
    metrics.emit_metrics(HostsData({"1.9.0": 1}, {}))
    assert metrics.samples() == [
        (HOSTS_VERSION_METRIC, {"bottlerocket_version": "1.9.0"}, 1),
    ]


def test_samples_are_sorted_by_label_value():
    metrics = _metrics_with({"1.9.0": 1, "1.10.0": 4, "1.8.0": 2}, {})
    versions = [labels["bottlerocket_version"] for _, labels, _ in metrics.samples()]
    assert versions == sorted(versions)
    assert len(versions) == 3


def test_render_contains_type_and_sample_lines():
    metrics = _metrics_with({"1.8.0": 2}, {"Idle": 3})
    lines = metrics.render().splitlines()
    assert f"# TYPE {HOSTS_VERSION_METRIC} gauge" in lines
    assert f"# TYPE {HOSTS_STATE_METRIC} gauge" in lines
    assert f'{HOSTS_VERSION_METRIC}{{bottlerocket_version="1.8.0"}} 2' in lines
    assert f'{HOSTS_STATE_METRIC}{{state="Idle"}} 3' in lines


def test_render_has_one_line_per_sample_plus_headers():
    metrics = _metrics_with({"1.8.0": 2, "1.9.0": 1}, {"Idle": 3})
    lines = metrics.render().splitlines()
    sample_lines = [line for line in lines if not line.startswith("#")]
    assert len(sample_lines) == len(metrics.samples())
    assert sum(line.startswith("# HELP") for line in lines) == 2


def test_render_escapes_quotes_in_labels():
    metrics = _metrics_with({'a"b': 1}, {})
    assert '{bottlerocket_version="a\\"b"} 1' in metrics.render()


def test_emitted_data_is_not_shared_with_caller_mutation_of_samples():
    metrics = _metrics_with({"1.8.0": 2}, {})
    first = metrics.samples()
    first.clear()
    assert len(metrics.samples()) == 1