"""Tests for the c++filt-backed demangler."""

from conftest import FakeRunner

from bindiff.analysis.demangler import DemangleCache, Demangler, is_mangled_cpp
from bindiff.extraction.runner import ProcessResult


def _cxxfilt(mapping):
    def respond(cmd, *args):
        if args == ("--version",):
            return ProcessResult(0, "GNU c++filt 2.42\n")
        name = args[0]
        return ProcessResult(0, mapping.get(name, name) + "\n")

    return FakeRunner({"c++filt": respond})


def test_is_mangled_cpp():
    assert is_mangled_cpp("_ZN3foo3barEv")
    assert is_mangled_cpp("__ZN3foo3barEv")
    assert not is_mangled_cpp("main")
    assert not is_mangled_cpp("_main")


def test_demangle_and_cache():
    runner = _cxxfilt({"_ZN3foo3barEv": "foo::bar()"})
    cache = DemangleCache()
    demangler = Demangler(runner, cache)
    assert demangler.demangle("_ZN3foo3barEv") == "foo::bar()"
    assert demangler.demangle("_ZN3foo3barEv") == "foo::bar()"
    assert runner.count("c++filt") == 2  # --version plus one lookup
    assert cache.get("_ZN3foo3barEv") == "foo::bar()"


def test_plain_names_never_run_tool():
    runner = _cxxfilt({})
    assert Demangler(runner).demangle("main") is None
    assert runner.calls == []


def test_macho_spelling_retried_without_underscore():
    runner = _cxxfilt({"_ZN3foo3barEv": "foo::bar()"})
    assert Demangler(runner).demangle("__ZN3foo3barEv") == "foo::bar()"


def test_unchanged_output_is_a_failure_and_cached():
    runner = _cxxfilt({})
    cache = DemangleCache()
    demangler = Demangler(runner, cache)
    assert demangler.demangle("_Zgarbage") is None
    assert "_Zgarbage" in cache
    calls = len(runner.calls)
    assert demangler.demangle("_Zgarbage") is None
    assert len(runner.calls) == calls


def test_missing_tool_returns_none():
    demangler = Demangler(FakeRunner())
    assert not demangler.is_available()
    assert demangler.demangle("_ZN3foo3barEv") is None


def test_shared_cache_across_instances():
    cache = DemangleCache()
    Demangler(_cxxfilt({"_Z1fv": "f()"}), cache).demangle("_Z1fv")
    second = _cxxfilt({})
    assert Demangler(second, cache).demangle("_Z1fv") == "f()"
    assert second.calls == []


def test_batch_and_format():
    runner = _cxxfilt({"_Z1fv": "f()"})
    demangler = Demangler(runner)
    assert demangler.demangle_batch(["_Z1fv", "main", "_Z1fv"]) == {"_Z1fv": "f()"}
    assert demangler.format_symbol("_Z1fv") == "_Z1fv (f())"
    assert demangler.format_symbol("main") == "main"
