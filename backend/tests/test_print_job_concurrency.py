# Overview: Concurrent claim test for the print job queue against a file-backed SQLite database.

"""
Concurrency tests for print job claiming.

Each poller runs in its own thread with its own app context (and therefore
its own session and connection). The pollers are released together by a
barrier; every job must be handed to exactly one of them.
"""

import threading

import pytest

from slipsync import create_app
from slipsync.extensions import db
from slipsync.models import Merchant, PrintDevice, PrintJob
from slipsync.services import print_device_service, print_job_service

from conftest import TEST_CONFIG


POLLERS = 4
JOBS = 6


@pytest.fixture
def file_app(tmp_path):
    config = dict(TEST_CONFIG)
    config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{tmp_path / 'queue.db'}"
    config['SQLALCHEMY_ENGINE_OPTIONS'] = {'connect_args': {'timeout': 30}}
    app = create_app(config)

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def _seed(app) -> tuple[str, list[str]]:
    with app.app_context():
        db.session.add(Merchant(id="org_race", name="Race Retail"))
        secret = print_device_service.generate_device_secret()
        device = PrintDevice(
            device_identifier="agent-race",
            merchant_id="org_race",
            name="Race",
            api_secret=secret,
        )
        db.session.add(device)
        db.session.commit()

        job_ids = [
            print_job_service.enqueue(
                merchant_id="org_race",
                store_id=None,
                routing_key="agent-race",
                payload_json=f'{{"n": {n}}}',
            ).id
            for n in range(JOBS)
        ]
        return device.id, job_ids


class TestConcurrentClaim:

    def test_each_job_claimed_exactly_once(self, file_app):
        device_id, job_ids = _seed(file_app)
        barrier = threading.Barrier(POLLERS)
        results = []
        errors = []
        lock = threading.Lock()

        def poller():
            try:
                with file_app.app_context():
                    device = db.session.get(PrintDevice, device_id)
                    identifier = device.device_identifier
                    barrier.wait(timeout=10)
                    claimed = [job.id for job in print_job_service.claim_jobs(device)]
                    with lock:
                        results.append((identifier, claimed))
            except Exception as exc:
                with lock:
                    errors.append(exc)

        threads = [threading.Thread(target=poller) for _ in range(POLLERS)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert errors == []
        assert len(results) == POLLERS

        claimed_ids = [job_id for _, claimed in results for job_id in claimed]
        assert sorted(claimed_ids) == sorted(job_ids)
        assert len(claimed_ids) == len(set(claimed_ids))

        with file_app.app_context():
            rows = db.session.query(PrintJob).all()
            assert {row.status for row in rows} == {"processing"}
            assert {row.attempts for row in rows} == {1}
            # One claim wins every row it flipped
            assert len({row.claim_token for row in rows}) == 1

    def test_repeated_polls_after_claim_return_nothing(self, file_app):
        device_id, job_ids = _seed(file_app)
        with file_app.app_context():
            device = db.session.get(PrintDevice, device_id)
            assert len(print_job_service.claim_jobs(device)) == JOBS
            assert print_job_service.claim_jobs(device) == []
