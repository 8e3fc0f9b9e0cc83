import logging
import os
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status

from src.schemas import (
    AdHocCheckOut,
    AdHocCheckRequest,
    ProcessResult,
    RankingCheckOut,
    RankingJobAccepted,
    RankingJobCreate,
    RankingJobOut,
    ScheduledCheckResult,
    TokenInfo,
)
from src.services import AdHocCheckService, QueueProcessor, RankingQueueService, SchedulerService
from src.services.queue_processor import drain_queue
from src.services.sqs_producer import SQSProducerService
from src.utils.dependencies import get_current_user, get_service, verify_service_key

router = APIRouter(prefix="/ranking", tags=["ranking"])

RankingQueueServiceDep = Depends(get_service(RankingQueueService))
QueueProcessorDep = Depends(get_service(QueueProcessor))
SchedulerServiceDep = Depends(get_service(SchedulerService))
AdHocCheckServiceDep = Depends(get_service(AdHocCheckService))


def wake_processor(background_tasks: BackgroundTasks, job_ids: List[int], source: str) -> str:
    """Make sure something drains the queue after new jobs were admitted.

    Sends a signal to the worker's SQS queue when one is configured and runs
    the drain loop as a background task otherwise, or when the send fails.
    """
    if os.getenv("SQS_JOB_QUEUE_URL"):
        try:
            SQSProducerService().send_process_signal(job_ids, source=source)
            return "sqs"
        except Exception as e:
            logging.error(f"Failed to send to SQS, falling back to background task: {str(e)}")
    else:
        logging.info("No SQS_JOB_QUEUE_URL configured, using background task")

    background_tasks.add_task(drain_queue)
    return "background"


@router.post("/jobs/", response_model=RankingJobAccepted)
def create_ranking_job(
    job_in: RankingJobCreate,
    background_tasks: BackgroundTasks,
    service: RankingQueueService = RankingQueueServiceDep,
    token: TokenInfo = Depends(get_current_user),
):
    job = service.enqueue(job_in.class_id, token.id, job_in.keyword_ids)
    wake_processor(background_tasks, [job.id], source="api")
    return RankingJobAccepted(
        job_id=job.id,
        class_id=job.class_id,
        total_keywords=job.total_keywords,
        status=job.status,
    )


@router.get("/jobs/", response_model=List[RankingJobOut])
def list_ranking_jobs(
    limit: int = 20,
    service: RankingQueueService = RankingQueueServiceDep,
    token: TokenInfo = Depends(get_current_user),
):
    return service.list_jobs(token.id, limit=limit)


@router.get("/jobs/{job_id}/", response_model=RankingJobOut)
def read_ranking_job(
    job_id: int,
    service: RankingQueueService = RankingQueueServiceDep,
    token: TokenInfo = Depends(get_current_user),
):
    return service.get_job(job_id, token.id)


@router.get("/classes/{class_id}/active-job/", response_model=Optional[RankingJobOut])
def read_active_job(
    class_id: int,
    service: RankingQueueService = RankingQueueServiceDep,
    token: TokenInfo = Depends(get_current_user),
):
    return service.get_active_job(class_id, token.id)


@router.post("/process/", response_model=ProcessResult, dependencies=[Depends(verify_service_key)])
def process_queue(processor: QueueProcessor = QueueProcessorDep):
    return processor.process_next()


@router.post("/scheduled-check/", response_model=ScheduledCheckResult, dependencies=[Depends(verify_service_key)])
def scheduled_check(
    background_tasks: BackgroundTasks,
    service: SchedulerService = SchedulerServiceDep,
):
    result = service.run()
    if result.enqueued_count:
        wake_processor(background_tasks, result.job_ids, source="scheduler")
    return result


@router.post("/check/", response_model=AdHocCheckOut)
def check_keyword(
    check_in: AdHocCheckRequest,
    service: AdHocCheckService = AdHocCheckServiceDep,
    token: TokenInfo = Depends(get_current_user),
):
    return service.check(token.id, check_in)


@router.get("/checks/", response_model=List[RankingCheckOut])
def list_keyword_checks(
    skip: int = 0,
    limit: int = 50,
    service: AdHocCheckService = AdHocCheckServiceDep,
    token: TokenInfo = Depends(get_current_user),
):
    return service.list_checks(token.id, skip=skip, limit=limit)


@router.delete("/checks/{check_id}/", status_code=status.HTTP_204_NO_CONTENT)
def delete_keyword_check(
    check_id: int,
    service: AdHocCheckService = AdHocCheckServiceDep,
    token: TokenInfo = Depends(get_current_user),
):
    service.delete_check(check_id, token.id)
