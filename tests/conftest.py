import pytest

from factories import Pipeline, RecordingSink
from stockwatch.container import create_test_container


@pytest.fixture
def pipeline() -> Pipeline:
    container = create_test_container()
    sink = RecordingSink()
    container.override("notification_sink", sink)
    pipe = Pipeline(container=container, sink=sink)
    pipe.add_symbol(1)
    return pipe
