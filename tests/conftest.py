"""Shared fixtures: a miniature player script and a fake script invoker."""

import pytest

from streamcipher.core.invoker import InvocationError

HELPER = "var Xy={ab:function(a,b){a.splice(0,b)},cd:function(a){a.reverse()}}"
SIG_FN = 'var sig=function(a){a=a.split("");Xy.cd(a,1);Xy.ab(a,2);return a.join("")}'
N_FN = 'var nfn=function(a){var b=a.split("");b.reverse();return b.join("")}'

PLAYER_JS = ";".join(
    [
        "var nArr=[nfn]",
        HELPER,
        SIG_FN,
        N_FN,
        'function pq(a,b,c){a.set("alr","yes");c&&(c=sig(decodeURIComponent(c)),'
        "a.set(b,encodeURIComponent(c)))}",
        'function rs(a){var b;a.get("ratebypass")&&(b=a.get("n"))&&(b=nArr[0](b),'
        'a.set("n",b))}',
    ]
) + ";"


class FakeInvoker:
    """Stands in for the JavaScript runtime: entry points map to Python callables."""

    runtime_name = "FakeJS"

    def __init__(self, **entry_points):
        self.entry_points = {
            "decipher_signature": lambda s: s[::-1],
            "transform_n": lambda n: n.upper(),
            **entry_points,
        }
        self.calls = []

    def invoke(self, snippet, entry_point, argument):
        self.calls.append((entry_point, argument))
        func = self.entry_points[entry_point]
        if isinstance(func, Exception):
            raise func
        return func(argument)


class FailingInvoker(FakeInvoker):
    def __init__(self):
        error = InvocationError("runtime exploded")
        super().__init__(decipher_signature=error, transform_n=error)


@pytest.fixture
def player_js():
    return PLAYER_JS


@pytest.fixture
def invoker():
    return FakeInvoker()


@pytest.fixture
def failing_invoker():
    return FailingInvoker()


@pytest.fixture
def player_parts():
    """The pieces of PLAYER_JS that extraction should cut out verbatim."""
    return {"helper": HELPER, "sig_fn": SIG_FN, "n_fn": N_FN}
