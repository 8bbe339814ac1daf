# Backend client and the result poller
from .client import AssessmentApiClient, ResultTransport
from .poller import PollState, ResultPoller
