import pytest

from bf_prefilter.bloom_filter import BloomFilter


URL_ITEMS = [
    "example.com",
    "example2.com",
    "example3.com",
    "example4.com",
    "example5.com",
    "example6.com",
    "example7.com",
    "example8.com",
    "example9.com",
    "example10.com/resource?query=bugs",
]
URL_FILTER_BASE64 = "KnFnz7/dUDyK51HqlhTlswav"
URL_FILTER_SEED = 3919904948


@pytest.fixture
def url_items():
    return list(URL_ITEMS)


@pytest.fixture
def url_filter():
    """The 144-bit, 10-hash prefilter over the ten example URLs."""
    bloom = BloomFilter(144, 10, 10, 0.0001, murmur_seed=URL_FILTER_SEED)
    bloom.update(URL_ITEMS)
    return bloom
