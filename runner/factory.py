from .invoker import RuntimeInvoker
from .local import LocalInvoker
from .sandbox import Sandbox

INVOKERS = {
    'local': LocalInvoker,
    'docker': Sandbox,
}


def create_invoker(cfg: dict) -> RuntimeInvoker:
    kind = cfg.get('invoker', 'local')
    try:
        invoker_cls = INVOKERS[kind]
    except KeyError:
        raise ValueError(f'unknown invoker: {kind}') from None
    return invoker_cls.from_config(cfg)
