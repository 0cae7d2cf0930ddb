# Client exports
from visionm.client.api import VisionMClient, VisionMClientError
from visionm.client.pollers import DatasetStatusPoller, JoinRequestPanel
from visionm.client.session import ProfileResolver
