"""
Cliente HTTP asincrono de la API publica de Fantasy Premier League.

Requisitos cubiertos:
- httpx.AsyncClient con timeout (el unico timeout del pipeline)
- reintentos con backoff exponencial para 429/5xx y errores de transporte
- validacion de forma de cada respuesta (PayloadValidationError)
- bootstrap-static memoizado por instancia del cliente
"""
from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Type, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from fpl_sync.core.config import Settings
from fpl_sync.infrastructure.external.fpl.schemas import (
    BootstrapStaticResponse,
    EntryResponse,
    PicksResponse,
    TransferResponse,
    TransfersResponse,
)
from fpl_sync.shared.exceptions.sync import FetchError, PayloadValidationError

T = TypeVar("T", bound=BaseModel)


class FplClient:
    """
    Cliente de la API de FPL.

    Importante:
    - Un 404 significa "sin datos" (entry inexistente o sin equipo en el
      evento) y se devuelve como None / lista vacia, no como error.
    - El unico estado que guarda es la respuesta de bootstrap-static, que no
      cambia dentro de una corrida; se libera con close().
    """

    def __init__(
        self,
        *,
        base_url: str = "https://fantasy.premierleague.com/api",
        user_agent: str = "fpl-sync",
        timeout_s: float = 20.0,
        max_retries: int = 2,
        backoff_s: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._max_retries = max_retries
        self._backoff_s = backoff_s
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            timeout=timeout_s,
            transport=transport,
        )
        self._bootstrap: Optional[BootstrapStaticResponse] = None
        self._bootstrap_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "FplClient":
        return cls(
            base_url=settings.FPL_API_BASE_URL,
            user_agent=settings.FPL_USER_AGENT,
            timeout_s=settings.FPL_TIMEOUT_SECONDS,
            max_retries=settings.FPL_MAX_RETRIES,
            backoff_s=settings.FPL_BACKOFF_SECONDS,
            **kwargs,
        )

    async def close(self) -> None:
        self._bootstrap = None
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def get_bootstrap(self) -> BootstrapStaticResponse:
        """Obtiene bootstrap-static (una sola vez por instancia)."""
        if self._bootstrap is not None:
            return self._bootstrap
        async with self._bootstrap_lock:
            if self._bootstrap is None:
                payload = await self._request_json("/bootstrap-static/")
                if payload is None:
                    raise FetchError("bootstrap-static no disponible (404)")
                self._bootstrap = self._validate(BootstrapStaticResponse, payload)
                logger.info(f"bootstrap-static cargado: {len(self._bootstrap.events)} eventos")
        return self._bootstrap

    async def get_current_event(self) -> Optional[int]:
        """
        Evento (gameweek) actual segun bootstrap-static.

        Returns:
            Optional[int]: ID del evento marcado is_current o None (pretemporada)
        """
        bootstrap = await self.get_bootstrap()
        for event in bootstrap.events:
            if event.is_current:
                return event.id
        return None

    async def get_entry(self, entry_id: int) -> Optional[EntryResponse]:
        payload = await self._request_json(f"/entry/{entry_id}/", subject_id=entry_id)
        if payload is None:
            return None
        return self._validate(EntryResponse, payload, subject_id=entry_id)

    async def get_entry_picks(self, entry_id: int, event_id: int) -> Optional[PicksResponse]:
        payload = await self._request_json(
            f"/entry/{entry_id}/event/{event_id}/picks/",
            subject_id=entry_id,
            secondary_key=event_id,
        )
        if payload is None:
            return None
        return self._validate(PicksResponse, payload, subject_id=entry_id, secondary_key=event_id)

    async def get_entry_transfers(self, entry_id: int) -> List[TransferResponse]:
        payload = await self._request_json(f"/entry/{entry_id}/transfers/", subject_id=entry_id)
        if payload is None:
            return []
        try:
            return TransfersResponse.validate_python(payload)
        except ValidationError as e:
            raise PayloadValidationError(
                f"Respuesta invalida de transfers: {e.error_count()} errores",
                subject_id=entry_id,
                details={"errors": e.errors(include_url=False, include_context=False, include_input=False)[:5]},
            ) from e

    # ------------------------------------------------------------------
    # Transporte
    # ------------------------------------------------------------------

    def _validate(
        self,
        schema: Type[T],
        payload: Any,
        *,
        subject_id: Optional[int] = None,
        secondary_key: Optional[int] = None,
    ) -> T:
        try:
            return schema.model_validate(payload)
        except ValidationError as e:
            raise PayloadValidationError(
                f"Respuesta invalida para {schema.__name__}: {e.error_count()} errores",
                subject_id=subject_id,
                secondary_key=secondary_key,
                details={"errors": e.errors(include_url=False, include_context=False, include_input=False)[:5]},
            ) from e

    async def _request_json(
        self,
        path: str,
        *,
        subject_id: Optional[int] = None,
        secondary_key: Optional[int] = None,
    ) -> Any:
        """
        GET con backoff para 429/5xx y errores de transporte.

        Estrategia:
        - 2xx: retorna el JSON
        - 404: retorna None (sin datos)
        - 429 / 5xx / transporte: reintenta con backoff exponencial
        - otros 4xx: FetchError inmediato
        """
        context = {"subject_id": subject_id, "secondary_key": secondary_key}

        for attempt in range(self._max_retries + 1):
            try:
                resp = await self._client.get(path)
            except httpx.TransportError as e:
                if attempt >= self._max_retries:
                    raise FetchError(
                        f"FPL inalcanzable tras {attempt} reintentos ({path}): {type(e).__name__}",
                        details={"path": path},
                        **context,
                    ) from e
                await self._sleep_backoff(attempt, path, type(e).__name__)
                continue

            if 200 <= resp.status_code < 300:
                try:
                    return resp.json()
                except ValueError as e:
                    raise PayloadValidationError(
                        f"Respuesta no JSON de FPL ({path})",
                        details={"path": path},
                        **context,
                    ) from e

            if resp.status_code == 404:
                return None

            # Errores recuperables
            if resp.status_code == 429 or 500 <= resp.status_code < 600:
                if attempt >= self._max_retries:
                    raise FetchError(
                        f"FPL error {resp.status_code} tras {attempt} reintentos ({path})",
                        details={"path": path, "status_code": resp.status_code},
                        **context,
                    )
                await self._sleep_backoff(attempt, path, str(resp.status_code))
                continue

            # Errores no recuperables
            raise FetchError(
                f"FPL request fallo {resp.status_code} ({path})",
                details={"path": path, "status_code": resp.status_code},
                **context,
            )

        raise FetchError(f"FPL request sin respuesta ({path})", details={"path": path}, **context)

    async def _sleep_backoff(self, attempt: int, path: str, reason: str) -> None:
        delay = self._backoff_s * (2 ** attempt)
        logger.debug(f"Reintentando {path} en {delay:.2f}s ({reason}, intento {attempt + 1})")
        if delay > 0:
            await asyncio.sleep(delay)
