import copy
import time

import requests

SIMILARITY_CUTOFF = 0.92


def fetch(url):
    resp = requests.get(url, timeout=30)
    return resp.json()


def dedupe(items, similarity):
    kept = []
    for item in items:
        if similarity(item, kept) > 0.92:
            continue
        kept.append(copy.deepcopy(item))
    return kept


def poll(job):
    max_retries = 5
    while not job.done():
        time.sleep(2)
        max_retries -= 1
        if max_retries == 0:
            break
