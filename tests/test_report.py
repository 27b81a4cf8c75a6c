import io

from happyx import Target, TargetRegistry, format_human, format_machine, report_human, report_machine

from .conftest import ipv6
from .test_rank import measured


def sample_registry():
    return TargetRegistry(
        [
            Target(
                "dual.example",
                "443",
                [
                    measured("192.0.2.1", 12345, -2000012, 999),
                ],
            ),
            Target("v4.example", "80", [measured("192.0.2.2", -5)]),
        ]
    )


class TestHumanReport:
    def test_layout(self):
        lines = format_human(sample_registry(), nqueries=3)

        assert lines[0] == "dual.example:443"
        assert lines[1] == " 192.0.2.1".ljust(42) + "   12.345" + "     *   " + "    0.999"
        assert lines[2] == ""
        assert lines[3] == "v4.example:80"

    def test_missing_rounds_are_placeholders(self):
        lines = format_human(sample_registry(), nqueries=3)

        assert lines[4] == " 192.0.2.2".ljust(42) + "     *   " * 3

    def test_ipv6_address_column(self):
        endpoint = ipv6("2001:db8::1")
        registry = TargetRegistry([Target("v6.example", "80", [endpoint])])

        line = format_human(registry, nqueries=1)[1]

        assert line.startswith(" 2001:db8::1 ")
        assert len(line) == 42 + 9

    def test_report_writes_lines(self):
        out = io.StringIO()
        report_human(sample_registry(), out, nqueries=3)

        assert out.getvalue().count("\n") == 5
        assert out.getvalue().endswith("\n")

    def test_does_not_mutate_registry(self):
        registry = sample_registry()
        before = [list(e.samples) for _, e in registry.endpoints()]
        format_human(registry, nqueries=5)
        format_machine(registry, now=0)
        assert [e.samples for _, e in registry.endpoints()] == before


class TestMachineReport:
    def test_records(self):
        lines = format_machine(sample_registry(), now=1700000000)

        assert lines == [
            "HAPPY.0;1700000000;OK;dual.example;443;192.0.2.1;12345;-2000012;999",
            "HAPPY.0;1700000000;FAIL;v4.example;80;192.0.2.2;-5",
        ]

    def test_field_count_matches_rounds(self):
        target = Target("h", "80", [measured("192.0.2.1", 10, 20, -30, 40)])
        line = format_machine(TargetRegistry([target]), now=1)[0]

        assert len(line.split(";")) == 6 + 4

    def test_defaults_to_current_time(self):
        out = io.StringIO()
        report_machine(sample_registry(), out)

        timestamp = int(out.getvalue().split(";")[1])
        assert timestamp > 1_600_000_000
