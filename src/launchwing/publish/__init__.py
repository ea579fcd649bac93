from launchwing.publish.publisher import Publisher
from launchwing.publish.steps import PublishState

__all__ = ["PublishState", "Publisher"]
