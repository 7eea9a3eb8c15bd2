"""HTTP implementation of the registry capability (OCI Distribution API v2).

Endpoints used:
    - HEAD/GET /v2/<name>/manifests/<reference>
    - GET      /v2/<name>/blobs/<digest>

Authentication: requests go out anonymously (or with a cached bearer token).
On a 401 the ``WWW-Authenticate`` challenge is answered once, either by
fetching a bearer token from the advertised realm or by resending with
basic credentials, and the request is reissued.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, BinaryIO

import requests

from bundlepull.config import PullConfig
from bundlepull.core.hasher import sha256_digest
from bundlepull.models.manifest import (
    INDEX_MEDIA_TYPES,
    MANIFEST_MEDIA_TYPES,
    Manifest,
    ManifestFormatError,
)
from bundlepull.models.references import DEFAULT_REGISTRY, ImageReference
from bundlepull.registry.protocol import ManifestNotFoundError, RegistryError

logger = logging.getLogger(__name__)

DOCKER_HUB_API_HOST = "registry-1.docker.io"
_ACCEPT = ", ".join(MANIFEST_MEDIA_TYPES + INDEX_MEDIA_TYPES)
_CHALLENGE_PARAM_RE = re.compile(r'(\w+)="([^"]*)"')


def parse_challenge(header: str) -> tuple[str, dict[str, str]]:
    """Split a ``WWW-Authenticate`` header into scheme and parameters."""
    scheme, _, params = header.strip().partition(" ")
    return scheme.lower(), dict(_CHALLENGE_PARAM_RE.findall(params))


class Registry:
    """Registry client over a ``requests.Session``.

    Parameters
    ----------
    username, password:
        Basic credentials; empty means anonymous access.
    insecure:
        Use plain http instead of https.
    timeout:
        Per-request timeout in seconds.
    session:
        Session to issue requests with; a new one by default.
    """

    def __init__(
        self,
        *,
        username: str = "",
        password: str = "",
        insecure: bool = False,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self._auth = (username, password) if username else None
        self._scheme = "http" if insecure else "https"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._tokens: dict[str, str] = {}

    @classmethod
    def from_config(cls, cfg: PullConfig, **overrides: Any) -> Registry:
        kwargs: dict[str, Any] = {
            "username": cfg.registry_username,
            "password": cfg.registry_password,
            "insecure": cfg.registry_insecure,
            "timeout": cfg.registry_timeout_seconds,
        }
        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)

    # ------------------------------------------------------------------
    # ImagesMetadata
    # ------------------------------------------------------------------

    def resolve(self, ref: ImageReference) -> str:
        if ref.digest:
            return ref.digest
        resp = self._request(
            "HEAD", ref, f"manifests/{ref.identifier}", headers={"Accept": _ACCEPT}
        )
        self._check(resp, f"Resolving {ref}")
        digest = resp.headers.get("Docker-Content-Digest")
        if digest:
            logger.debug("Resolved %s to %s", ref, digest)
            return digest
        return self.manifest(ref).digest

    def manifest(self, ref: ImageReference) -> Manifest:
        resp = self._request(
            "GET", ref, f"manifests/{ref.identifier}", headers={"Accept": _ACCEPT}
        )
        self._check(resp, f"Fetching manifest {ref}")
        raw = resp.content
        digest = sha256_digest(raw)
        if ref.digest and digest != ref.digest:
            raise RegistryError(
                f"Manifest digest mismatch for {ref}: registry returned {digest}"
            )
        media_type = resp.headers.get("Content-Type", "").split(";")[0].strip()
        try:
            return Manifest.from_bytes(raw, digest, media_type or None)
        except ManifestFormatError as exc:
            raise RegistryError(str(exc)) from exc

    @contextmanager
    def open_blob(self, ref: ImageReference, digest: str) -> Iterator[BinaryIO]:
        resp = self._request("GET", ref, f"blobs/{digest}", stream=True)
        try:
            self._check(resp, f"Fetching blob {ref.context}@{digest}")
            resp.raw.decode_content = True
            yield resp.raw
        finally:
            resp.close()

    def exists(self, ref: ImageReference) -> bool:
        resp = self._request(
            "HEAD", ref, f"manifests/{ref.identifier}", headers={"Accept": _ACCEPT}
        )
        if resp.status_code == 404:
            return False
        self._check(resp, f"Checking {ref}")
        return True

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _base_url(self, ref: ImageReference) -> str:
        host = DOCKER_HUB_API_HOST if ref.registry == DEFAULT_REGISTRY else ref.registry
        return f"{self._scheme}://{host}"

    def _request(
        self,
        method: str,
        ref: ImageReference,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        stream: bool = False,
    ) -> requests.Response:
        url = f"{self._base_url(ref)}/v2/{ref.repository}/{path}"
        resp = self._send(method, url, ref, headers, stream)
        if resp.status_code != 401:
            return resp

        challenge = resp.headers.get("WWW-Authenticate", "")
        scheme, params = parse_challenge(challenge)
        resp.close()
        if scheme == "bearer" and params.get("realm"):
            self._tokens[ref.context] = self._fetch_token(ref, params)
            return self._send(method, url, ref, headers, stream)
        if scheme == "basic" and self._auth:
            return self._send(method, url, ref, headers, stream, basic=True)
        raise RegistryError(f"{method} {url}: unauthorized", 401)

    def _send(
        self,
        method: str,
        url: str,
        ref: ImageReference,
        headers: dict[str, str] | None,
        stream: bool,
        basic: bool = False,
    ) -> requests.Response:
        headers = dict(headers or {})
        token = self._tokens.get(ref.context)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        logger.debug("%s %s", method, url)
        try:
            return self._session.request(
                method,
                url,
                headers=headers,
                auth=self._auth if basic else None,
                stream=stream,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise RegistryError(f"{method} {url}: {exc}") from exc

    def _fetch_token(self, ref: ImageReference, params: dict[str, str]) -> str:
        query = {"scope": params.get("scope") or f"repository:{ref.repository}:pull"}
        if params.get("service"):
            query["service"] = params["service"]
        logger.debug("Fetching registry token from %s", params["realm"])
        try:
            resp = self._session.request(
                "GET",
                params["realm"],
                params=query,
                auth=self._auth,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise RegistryError(f"Fetching registry token: {exc}") from exc
        self._check(resp, "Fetching registry token")
        body = resp.json()
        token = body.get("token") or body.get("access_token")
        if not token:
            raise RegistryError("Fetching registry token: no token in response")
        return token

    @staticmethod
    def _check(resp: requests.Response, what: str) -> None:
        if resp.status_code == 404:
            raise ManifestNotFoundError(f"{what}: not found", 404)
        if resp.status_code >= 400:
            raise RegistryError(
                f"{what}: {resp.status_code} {resp.reason}", resp.status_code
            )
