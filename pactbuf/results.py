"""Summaries of the requests a mock server received, and a registry of running servers."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace

from .mismatches import (
    BodyMatchResult,
    ContentMismatch,
    MetadataMatchResult,
    Mismatch,
    MismatchKind,
    mismatch_to_content_mismatch,
)

RouteResult = tuple[BodyMatchResult, MetadataMatchResult]
RouteResults = tuple[int, Sequence[RouteResult]]


@dataclass(frozen=True)
class MockServerResult:
    """The outcome for one route of a mock server."""

    path: str = ""
    error: str = ""
    mismatches: list[ContentMismatch] = field(default_factory=list)


def _body_mismatch(mismatch: Mismatch) -> ContentMismatch:
    if mismatch.kind is MismatchKind.BODY:
        return replace(mismatch_to_content_mismatch(mismatch), mismatch_type="body")
    return ContentMismatch(mismatch=mismatch.description(), mismatch_type="body")


def _metadata_mismatch(mismatch: Mismatch) -> ContentMismatch:
    if mismatch.kind is MismatchKind.METADATA:
        return replace(mismatch_to_content_mismatch(mismatch), mismatch_type="metadata")
    return ContentMismatch(mismatch=mismatch.description(), mismatch_type="metadata")


def _route_mismatches(route_results: Iterable[RouteResult]) -> list[ContentMismatch]:
    found = []
    for body_result, metadata_result in route_results:
        found.extend(_body_mismatch(m) for m in body_result.mismatches())
        found.extend(_metadata_mismatch(m) for m in metadata_result.mismatches)
    return found


def summarise_mock_server_results(
    results: Mapping[str, RouteResults],
) -> tuple[bool, list[MockServerResult]]:
    """Summarise per-route results into an overall flag and one result per route.

    All is well when every route received at least one request and every request matched.
    """
    ok = all(
        count > 0
        and all(body.is_ok() and metadata.all_matched() for body, metadata in route_results)
        for count, route_results in results.values()
    )
    summary = []
    for path, (count, route_results) in results.items():
        if count == 0:
            summary.append(
                MockServerResult(
                    path=path, error=f"Did not receive any requests for path '{path}'"
                )
            )
        else:
            summary.append(
                MockServerResult(path=path, mismatches=_route_mismatches(route_results))
            )
    return ok, summary


def _not_found(server_key: str) -> tuple[bool, list[MockServerResult]]:
    return False, [
        MockServerResult(
            error=f"Did not find any mock server results for a server with ID {server_key}"
        )
    ]


class MockServerRegistry:
    """Thread safe store of the results recorded by running mock servers, by server key."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._servers: dict[str, dict[str, RouteResults]] = {}

    def register(self, server_key: str, results: Mapping[str, RouteResults]) -> None:
        """Record (or replace) the per-route results for a server."""
        with self._lock:
            self._servers[server_key] = {
                path: (count, list(route_results))
                for path, (count, route_results) in results.items()
            }

    def results_for(self, server_key: str) -> tuple[bool, list[MockServerResult]]:
        """Summarise the results of a server, or report that it is unknown."""
        with self._lock:
            results = self._servers.get(server_key)
            if results is None:
                return _not_found(server_key)
            return summarise_mock_server_results(results)

    def shutdown(self, server_key: str) -> tuple[bool, list[MockServerResult]]:
        """Summarise the results of a server and forget it, or report that it is unknown."""
        with self._lock:
            results = self._servers.pop(server_key, None)
        if results is None:
            return _not_found(server_key)
        return summarise_mock_server_results(results)

    def __contains__(self, server_key: object) -> bool:
        with self._lock:
            return server_key in self._servers