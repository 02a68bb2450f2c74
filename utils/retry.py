import time
from functools import wraps

from utils.logger import logger


def retry(exceptions, tries=3, delay=0.05, backoff=2, logger=logger):
    """Retry the wrapped call on `exceptions` with exponential backoff; the last attempt propagates."""
    def deco_retry(f):
        @wraps(f)
        def f_retry(*args, **kwargs):
            mtries, mdelay = tries, delay
            while mtries > 1:
                try:
                    return f(*args, **kwargs)
                except exceptions as e:
                    logger.warning("Retryable error in %s: %s, retrying in %s sec", f.__name__, e, mdelay)
                    time.sleep(mdelay)
                    mtries -= 1
                    mdelay *= backoff
            return f(*args, **kwargs)
        return f_retry
    return deco_retry
