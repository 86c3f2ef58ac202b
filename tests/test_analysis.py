import importlib.util
import logging

import pytest

from funcbounds import (
    AnalysisError,
    BytesMemorySource,
    Candidate,
    FunctionAnalysis,
    FunctionRange,
    InMemoryFunctionRegistry,
    analyze,
    export_boundaries,
)
from scripted import ScriptedDecoder, call, jump, plain, ret


def _source(base: int, size: int) -> BytesMemorySource:
    return BytesMemorySource(b"\xCC" * size, load_address=base)


def _two_function_decoder() -> ScriptedDecoder:
    # 0x3010 runs straight into 0x3050 without a return
    decoder = ScriptedDecoder([call(0x3000, 0x3010), call(0x3005, 0x3050)])
    for address in range(0x3010, 0x3050, 4):
        decoder.add(plain(address, 4))
    decoder.add(plain(0x3050, 3))
    decoder.add(ret(0x3053))
    return decoder


class _FailingSource:
    def read(self, address: int, length: int) -> bytes:
        raise OSError("process is gone")


class _FailingRegistry:
    def remove_range(self, start: int, end: int) -> None:
        raise OSError("registry unavailable")

    def add_range(self, start: int, end: int, heuristic: bool = True) -> None:
        raise AssertionError("not reached")


def test_call_target_resolves_to_its_return() -> None:
    decoder = ScriptedDecoder(
        [call(0x1000, 0x1020), plain(0x1020), plain(0x1021, 2), ret(0x1023)]
    )

    candidates = analyze(_source(0x1000, 0x30), decoder, 0x1000, 0x30)

    assert list(candidates) == [Candidate(0x1020, 0x1023)]


def test_backward_jump_after_return_is_the_end() -> None:
    decoder = ScriptedDecoder(
        [
            call(0x2000, 0x2010),
            jump(0x2010, 0x2014, conditional=True),
            ret(0x2012),
            plain(0x2013),
            jump(0x2014, 0x2010),
        ]
    )

    candidates = analyze(_source(0x2000, 0x20), decoder, 0x2000, 0x20)

    assert list(candidates) == [Candidate(0x2010, 0x2014)]


def test_candidate_without_return_before_next_stays_unknown() -> None:
    candidates = analyze(_source(0x3000, 0x60), _two_function_decoder(), 0x3000, 0x60)

    assert list(candidates) == [Candidate(0x3010, None), Candidate(0x3050, 0x3053)]
    assert candidates.upper_bound(0) == 0x3050


def test_invalid_opcode_mid_function_still_resolves() -> None:
    decoder = ScriptedDecoder(
        [call(0x4000, 0x4010), plain(0x4010, 2), plain(0x4013), ret(0x4014)]
    )

    candidates = analyze(_source(0x4000, 0x20), decoder, 0x4000, 0x20)

    assert list(candidates) == [Candidate(0x4010, 0x4014)]


def test_analysis_is_deterministic() -> None:
    source = _source(0x3000, 0x60)
    decoder = _two_function_decoder()

    first = analyze(source, decoder, 0x3000, 0x60)
    second = analyze(source, decoder, 0x3000, 0x60)

    assert first == second


def test_resolved_ends_stay_inside_bounds() -> None:
    candidates = analyze(_source(0x3000, 0x60), _two_function_decoder(), 0x3000, 0x60)

    for index, candidate in enumerate(candidates):
        if candidate.end is None:
            continue
        assert candidate.start <= candidate.end < candidates.upper_bound(index)


def test_already_resolved_candidates_are_skipped() -> None:
    decoder = _two_function_decoder()
    analysis = FunctionAnalysis(_source(0x3000, 0x60), decoder, 0x3000, 0x60)
    candidates = analysis.populate_references()
    candidates.resolve(1, 0x3050)

    analysis.analyse_functions(candidates)

    assert candidates[1].end == 0x3050


def test_export_replaces_previous_heuristic_ranges() -> None:
    decoder = _two_function_decoder()
    analysis = FunctionAnalysis(_source(0x3000, 0x60), decoder, 0x3000, 0x60)
    registry = InMemoryFunctionRegistry(
        [FunctionRange(0x3010, 0x3020), FunctionRange(0x2000, 0x2010, manual=True)]
    )

    candidates = analysis.analyze()
    analysis.export_boundaries(registry, candidates)
    analysis.export_boundaries(registry, candidates)

    assert registry.ranges() == [
        FunctionRange(0x2000, 0x2010, manual=True),
        FunctionRange(0x3050, 0x3053),
    ]


def test_progress_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="funcbounds.analysis"):
        analyze(_source(0x3000, 0x60), _two_function_decoder(), 0x3000, 0x60)

    assert "analysis started" in caplog.text
    assert "2 called functions populated" in caplog.text
    assert "analysis finished" in caplog.text


def test_memory_source_failure_aborts() -> None:
    with pytest.raises(AnalysisError) as excinfo:
        FunctionAnalysis(_FailingSource(), ScriptedDecoder(), 0x1000, 0x10)

    assert isinstance(excinfo.value.__cause__, OSError)


def test_registry_failure_aborts() -> None:
    candidates = analyze(_source(0x3000, 0x60), _two_function_decoder(), 0x3000, 0x60)

    with pytest.raises(AnalysisError):
        export_boundaries(_FailingRegistry(), 0x3000, 0x60, candidates)


def test_negative_size_is_rejected() -> None:
    with pytest.raises(ValueError):
        FunctionAnalysis(_source(0x1000, 0x10), ScriptedDecoder(), 0x1000, -4)


def test_empty_region_has_no_candidates() -> None:
    candidates = analyze(_source(0x1000, 0), ScriptedDecoder(), 0x1000, 0)

    assert len(candidates) == 0


def test_runtime_package_ships_no_scripted_decoder() -> None:
    import funcbounds

    assert importlib.util.find_spec("funcbounds.scripted") is None
    assert not hasattr(funcbounds, "ScriptedDecoder")
