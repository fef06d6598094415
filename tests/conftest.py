import pytest

from s3_fakes import make_image


@pytest.fixture
def jpeg_bytes():
    return make_image('JPEG')


@pytest.fixture
def png_bytes():
    return make_image('PNG', size=(300, 900), mode='RGBA')
