# This test file validates the static credential provider.
# It exists so concurrent rejections from gateway worker threads sign out exactly once per call.
# Plain threads stand in for the worker pool the collection controller offloads to.

from __future__ import annotations

import threading

from src.admin_console.auth import StaticCredentialProvider


def test_credential_is_returned_until_rejected() -> None:
    provider = StaticCredentialProvider("token-1")
    assert provider.get_credential() == "token-1"

    provider.on_unauthorized()

    assert provider.get_credential() is None
    assert provider.sign_out_count == 1


def test_blank_token_counts_as_missing() -> None:
    assert StaticCredentialProvider("").get_credential() is None


def test_concurrent_rejections_from_worker_threads() -> None:
    hook_calls: list[str] = []
    hook_lock = threading.Lock()

    def on_sign_out() -> None:
        with hook_lock:
            hook_calls.append(threading.current_thread().name)

    provider = StaticCredentialProvider("token-1", on_sign_out=on_sign_out)
    start = threading.Barrier(8)

    def reject() -> None:
        start.wait(timeout=5)
        provider.on_unauthorized()

    workers = [threading.Thread(target=reject, name=f"worker-{i}") for i in range(8)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(timeout=5)

    assert provider.sign_out_count == 8
    assert provider.get_credential() is None
    assert sorted(hook_calls) == sorted(worker.name for worker in workers)
