import pytest

from fizzerb.space import Material, Microphone, Space, Speaker, make_box


@pytest.fixture
def square_room() -> Space:
    """10 x 10 box, speaker at (3, 5), microphone at (7, 5)."""
    space = Space()
    mat = space.add_material(Material())
    space.add_walls(make_box((0.0, 0.0), (10.0, 10.0), mat))
    space.add_speaker(Speaker((3.0, 5.0)))
    space.add_microphone(Microphone((7.0, 5.0)))
    return space
