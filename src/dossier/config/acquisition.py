"""Timing and paging defaults for report acquisition."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, env_int

DEFAULT_CALL_TIMEOUT_SECONDS = 30.0
DEFAULT_PPSR_RESULT_DELAY_SECONDS = 3.0
DEFAULT_ORDER_RESULT_DELAY_SECONDS = 50.0
DEFAULT_REPORT_RESULT_DELAY_SECONDS = 5.0
DEFAULT_RETRY_ATTEMPTS = 5
DEFAULT_RETRY_BASE_DELAY_SECONDS = 3.0
DEFAULT_RETRY_MAX_DELAY_SECONDS = 15.0
DEFAULT_PAGE_SIZE = 20
DEFAULT_PAGE_DELAY_SECONDS = 0.5
DEFAULT_ACQUIRE_TIMEOUT_SECONDS = 900.0


@dataclass(frozen=True, slots=True)
class RetrySettings:
    max_attempts: int = DEFAULT_RETRY_ATTEMPTS
    base_delay: float = DEFAULT_RETRY_BASE_DELAY_SECONDS
    max_delay: float = DEFAULT_RETRY_MAX_DELAY_SECONDS


@dataclass(frozen=True, slots=True)
class AcquisitionConfig:
    call_timeout: float = DEFAULT_CALL_TIMEOUT_SECONDS
    ppsr_result_delay: float = DEFAULT_PPSR_RESULT_DELAY_SECONDS
    order_result_delay: float = DEFAULT_ORDER_RESULT_DELAY_SECONDS
    report_result_delay: float = DEFAULT_REPORT_RESULT_DELAY_SECONDS
    retry: RetrySettings = RetrySettings()
    page_size: int = DEFAULT_PAGE_SIZE
    page_delay: float = DEFAULT_PAGE_DELAY_SECONDS
    acquire_timeout: float = DEFAULT_ACQUIRE_TIMEOUT_SECONDS

    def phase_timeout(self, delay: float) -> float:
        """Wall-clock budget for a delay-then-fetch phase."""
        return delay + self.call_timeout


def get_acquisition_config() -> AcquisitionConfig:
    return AcquisitionConfig(
        call_timeout=env_float("DOSSIER_CALL_TIMEOUT", DEFAULT_CALL_TIMEOUT_SECONDS),
        ppsr_result_delay=env_float("DOSSIER_PPSR_DELAY", DEFAULT_PPSR_RESULT_DELAY_SECONDS),
        order_result_delay=env_float("DOSSIER_ORDER_DELAY", DEFAULT_ORDER_RESULT_DELAY_SECONDS),
        report_result_delay=env_float(
            "DOSSIER_REPORT_DELAY", DEFAULT_REPORT_RESULT_DELAY_SECONDS
        ),
        retry=RetrySettings(
            max_attempts=env_int("DOSSIER_RETRY_ATTEMPTS", DEFAULT_RETRY_ATTEMPTS),
            base_delay=env_float("DOSSIER_RETRY_BASE_DELAY", DEFAULT_RETRY_BASE_DELAY_SECONDS),
            max_delay=env_float("DOSSIER_RETRY_MAX_DELAY", DEFAULT_RETRY_MAX_DELAY_SECONDS),
        ),
        page_size=env_int("DOSSIER_PAGE_SIZE", DEFAULT_PAGE_SIZE),
        page_delay=env_float("DOSSIER_PAGE_DELAY", DEFAULT_PAGE_DELAY_SECONDS),
        acquire_timeout=env_float("DOSSIER_ACQUIRE_TIMEOUT", DEFAULT_ACQUIRE_TIMEOUT_SECONDS),
    )
