import pytest


def _build_blob(layout, **overrides):
    """Build an account blob with zeroed fields, applying overrides."""
    values = {}
    for subcon in layout.subcons:
        if not subcon.name:
            continue
        values[subcon.name] = bytes(32) if subcon.sizeof() == 32 else 0
    values.update(overrides)
    return layout.build(values)


@pytest.fixture
def build_blob():
    return _build_blob
