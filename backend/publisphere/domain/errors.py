class JobError(Exception):
    """Base exception for scheduled job processing errors."""


class JobNotFoundError(JobError):
    def __init__(self, job_id):
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class InvalidJobTransitionError(JobError):
    def __init__(self, current_status, target_status):
        super().__init__(f"Cannot transition from {current_status} to {target_status}")
        self.current_status = current_status
        self.target_status = target_status


class JobStoreUnavailableError(JobError):
    pass


class CronAuthError(JobError):
    pass
