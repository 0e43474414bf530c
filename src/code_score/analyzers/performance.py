"""Performance analyzer — dependency weight, lazy loading, caching, async.

Point allocation (15):

    dependency_footprint  4   production dependency count, heavy packages
    bundle_tooling        2   bundle analysis / profiling tools
    code_splitting        4   dynamic imports 2, lazy components 1, route splitting 1
    memoization           3   memoization 2, caching 1
    async_efficiency      2   parallel awaits 1, throttling / worker offload 1

Signals come in two tables, one per ecosystem; the check logic is shared.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from code_score.analyzers.base import BaseAnalyzer, Check
from code_score.model import Category, Ecosystem

_HEAVY_PACKAGES = {
    "moment": "date-fns or dayjs",
    "lodash": "lodash-es or native methods",
    "jquery": "native DOM APIs",
    "request": "native fetch or undici",
    "core-js": "targeted polyfills",
}

_NODE_BUNDLE_TOOLS = (
    "webpack-bundle-analyzer",
    "rollup-plugin-visualizer",
    "source-map-explorer",
    "vite-bundle-visualizer",
    "size-limit",
    "bundlesize",
    "@next/bundle-analyzer",
)
_NODE_BUILD_TOOLS = ("vite", "webpack", "esbuild", "rollup", "parcel", "next", "turbo", "tsup")
_PY_PROFILERS = (
    "pytest-benchmark",
    "py-spy",
    "scalene",
    "line-profiler",
    "memory-profiler",
    "pyinstrument",
    "asv",
)
_PY_CACHE_LIBS = ("redis", "cachetools", "diskcache", "aiocache", "joblib", "django-redis", "flask-caching")
_NODE_CACHE_LIBS = ("lru-cache", "node-cache", "redis", "ioredis", "keyv", "quick-lru")


@dataclass(frozen=True)
class _Signals:
    dynamic_imports: re.Pattern[str]
    lazy_components: re.Pattern[str]
    route_splitting: re.Pattern[str]
    memoization: re.Pattern[str]
    caching: re.Pattern[str]
    parallel: re.Pattern[str]
    offload: re.Pattern[str]
    sequential_await: re.Pattern[str]


_NODE = _Signals(
    dynamic_imports=re.compile(r"\bimport\s*\(\s*['\"`]"),
    lazy_components=re.compile(r"\b(React\.)?lazy\s*\(|\bdefineAsyncComponent\s*\("),
    route_splitting=re.compile(r"(component|loadComponent|element)\s*:\s*\(?\s*\)?\s*=>\s*import\s*\(|lazy\s*\(\s*\(\s*\)\s*=>\s*import"),
    memoization=re.compile(r"\b(useMemo|useCallback|React\.memo|memo|computed|memoize)\s*\("),
    caching=re.compile(r"\bnew\s+(Map|WeakMap|LRUCache)\s*\(|\bcache\s*\.(get|set)\s*\("),
    parallel=re.compile(r"\bPromise\.(all|allSettled|any)\s*\("),
    offload=re.compile(r"\b(debounce|throttle|requestIdleCallback)\s*\(|\bnew\s+Worker\s*\("),
    sequential_await=re.compile(r"for\s*\([^)]*\)\s*\{[^{}]*\bawait\b"),
)

_PYTHON = _Signals(
    dynamic_imports=re.compile(r"^[ \t]+(import\s+\w|from\s+\S+\s+import\s)|\bimportlib\.import_module\s*\(", re.MULTILINE),
    lazy_components=re.compile(r"^\s*yield\b|\bcached_property\b", re.MULTILINE),
    route_splitting=re.compile(r"\b(include_router|register_blueprint|include)\s*\("),
    memoization=re.compile(r"@(functools\.)?(lru_cache|cache|cached_property)\b"),
    caching=re.compile(r"\b(TTLCache|LRUCache|cache\.(get|set))\b"),
    parallel=re.compile(r"\basyncio\.gather\s*\(|\bTaskGroup\s*\(|\b(ThreadPool|ProcessPool)Executor\s*\("),
    offload=re.compile(r"\brun_in_executor\s*\(|\basyncio\.to_thread\s*\(|\bSemaphore\s*\("),
    sequential_await=re.compile(r"^\s*for\s[^\n]*:\n(\s+[^\n]*\n){0,3}\s+[^\n]*\bawait\b", re.MULTILINE),
)


class PerformanceAnalyzer(BaseAnalyzer):
    """Scores signals of runtime and load-time efficiency."""

    name = Category.PERFORMANCE.value
    max_score = 15.0
    version = "1.0.0"
    default_confidence = 0.65
    checks = (
        Check("dependency_footprint", 4, "check_dependency_footprint"),
        Check("bundle_tooling", 2, "check_bundle_tooling"),
        Check("code_splitting", 4, "check_code_splitting"),
        Check("memoization", 3, "check_memoization"),
        Check("async_efficiency", 2, "check_async_efficiency"),
    )

    @property
    def signals(self) -> _Signals:
        return _PYTHON if self.ecosystem is Ecosystem.PYTHON else _NODE

    def _sampled(self) -> list:
        return self.sample(self.source_files(), 30)

    def check_dependency_footprint(self) -> None:
        manifest = self.require_manifest()
        if manifest is None:
            return
        total = len(manifest.dependencies)
        heavy = sorted(name for name in _HEAVY_PACKAGES if name in manifest.dependencies)
        self.set_detail("dependency_footprint", {"production": total, "heavy": heavy})

        if total <= 10:
            points = 4
        elif total <= 25:
            points = 3
        elif total <= 50:
            points = 2
            self.flag("Many production dependencies", "Audit dependencies for load-time impact", impact=1.5)
        else:
            points = 1
            self.flag("Very high dependency count", "Remove or replace heavy dependencies", impact=2.5)
        if heavy:
            points = max(points - 1, 0)
            for name in heavy:
                self.flag(
                    f"Heavy dependency: {name}",
                    f"Replace {name} with {_HEAVY_PACKAGES[name]}",
                    impact=1.0,
                    patterns=("bundle-size",),
                )
        self.add_score(points, 4, f"{total} production dependencies")

    def check_bundle_tooling(self) -> None:
        manifest = self.manifest
        if self.ecosystem is Ecosystem.PYTHON:
            if manifest is not None and manifest.has_dependency(*_PY_PROFILERS):
                self.add_score(2, 2, "Profiling or benchmark tooling configured")
            else:
                self.flag(
                    "No profiling or benchmark tooling",
                    "Add pytest-benchmark or pyinstrument to track performance regressions",
                    impact=1.0,
                    confidence=0.5,
                    patterns=("profiling",),
                )
            return
        if manifest is not None and manifest.has_dependency(*_NODE_BUNDLE_TOOLS):
            self.add_score(2, 2, "Bundle analysis tool detected")
        elif manifest is not None and manifest.has_dependency(*_NODE_BUILD_TOOLS):
            self.add_score(1, 2, "Build tool present without bundle analysis")
            self.flag("No bundle analysis tool found", "Add a bundle analyzer (e.g. rollup-plugin-visualizer)", impact=1.0, patterns=("bundle-size",))
        else:
            self.flag("No build or bundle tooling found", "Add a bundler with bundle analysis for production builds", impact=1.0, patterns=("bundle-size",))

    def check_code_splitting(self) -> None:
        files = self._sampled()
        sig = self.signals
        dynamic = self.count_matches(files, sig.dynamic_imports)
        lazy = self.count_files_matching(files, sig.lazy_components)
        routes = self.count_files_matching(files, sig.route_splitting)
        self.set_detail("code_splitting", {"dynamic_imports": dynamic, "lazy_files": lazy, "route_split_files": routes})
        if dynamic >= 5:
            self.add_score(2, 2, f"Dynamic imports found ({dynamic})")
        elif dynamic:
            self.add_score(1, 2, f"Few dynamic imports ({dynamic})")
        else:
            self.flag("No dynamic imports found", "Load rarely used modules lazily", impact=1.5, patterns=("code-splitting",))
        if lazy:
            self.add_score(1, 1, f"Lazy loading detected ({lazy} files)")
        elif self.ecosystem is Ecosystem.NODE and self.context.project_type.endswith("webapp"):
            self.flag("No lazy components found", "Use lazy() for component-level code splitting", impact=1.0, patterns=("code-splitting", "react"))
        if routes:
            self.add_score(1, 1, f"Route-level splitting detected ({routes} files)")

    def check_memoization(self) -> None:
        files = self._sampled()
        sig = self.signals
        memo = self.count_matches(files, sig.memoization)
        cached = self.count_files_matching(files, sig.caching)
        cache_libs = _PY_CACHE_LIBS if self.ecosystem is Ecosystem.PYTHON else _NODE_CACHE_LIBS
        has_cache_lib = self.manifest is not None and self.manifest.has_dependency(*cache_libs)
        self.set_detail("memoization", {"memo_sites": memo, "caching_files": cached, "cache_library": has_cache_lib})
        self.add_score(min(memo / 5, 1) * 2, 2, f"Memoization sites ({memo})")
        if memo == 0:
            fix = "Cache pure, expensive functions with functools.lru_cache" if self.ecosystem is Ecosystem.PYTHON else "Use useMemo/useCallback or memoize expensive computations"
            self.flag("No memoization detected", fix, impact=1.0, patterns=("memoization",))
        if cached or has_cache_lib:
            self.add_score(1, 1, "Caching in place")

    def check_async_efficiency(self) -> None:
        files = self._sampled()
        sig = self.signals
        parallel = self.count_files_matching(files, sig.parallel)
        offload = self.count_files_matching(files, sig.offload)
        sequential = self.count_files_matching(files, sig.sequential_await)
        self.set_detail("async", {"parallel_files": parallel, "offload_files": offload, "sequential_await_files": sequential})
        if parallel:
            self.add_score(1, 1, f"Concurrent awaits detected ({parallel} files)")
        if offload:
            self.add_score(1, 1, f"Work offloading or throttling detected ({offload} files)")
        if sequential:
            fix = "Gather independent awaits with asyncio.gather" if self.ecosystem is Ecosystem.PYTHON else "Run independent awaits concurrently with Promise.all"
            self.flag(f"Sequential awaits in loops ({sequential} files)", fix, impact=1.5, patterns=("async",))
