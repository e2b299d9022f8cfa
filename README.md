# noctua

Reusable pieces of a content-crawling service. Each module can be used on its own:

| Module | What it gives you |
| --- | --- |
| `noctua.ringbuffer` | `RingBuffer`, a fixed-size circular buffer that keeps the newest values |
| `noctua.priority_queue` | `PriorityQueue`, a thread-safe priority queue with removal by id |
| `noctua.constants` | `CrawlerType` and `MediaCode` string enums |
| `noctua.task` | `Task`, `TaskItem`, `TaskNode`, `TaskStatus`, `new_task`, `build_task_tree`, `task_to_dict` |
| `noctua.worker` | `Worker` and the `RateLimiter` that paces it |
| `noctua.scheduler` | `Scheduler`, a multi-queue task scheduler with auto-scaled workers and retries |
| `noctua.signer` | `SignServerClient` and the request/response models of an HTTP signing service |
| `noctua.douyin_tokens` | verifyFp / s_v_web_id, fake msToken, web id and cookie-string helpers |
| `noctua.douyin_models` | typed models of Douyin web API replies and parsers for them |
| `noctua.web` | JSON reply payloads, the `nomacro` check and client-IP lookup |

## Install

```
pip install .
pip install ".[test]"   # pytest and responses, to run the tests
```

The only runtime dependency is `requests`.

## Ring buffer

```python
from noctua.ringbuffer import RingBuffer

rb = RingBuffer(3)
for value in (1, 2, 3, 4):
    rb.add(value)
rb.get_all()   # [2, 3, 4]  oldest to newest
rb.first()     # 2
rb.last(0)     # 4
rb.last(1)     # 3
len(rb)        # 3
rb.clear()
```

`first()` on an empty buffer and `last(n)` with `n` out of range raise `IndexError`.
A size of zero or less raises `ValueError`.

## Priority queue

Items need `id`, `priority` and `enqueued_at` attributes (`noctua.task.TaskItem` has them).
Higher priority pops first; equal priorities pop in `enqueued_at` order.

```python
from noctua.priority_queue import PriorityQueue
from noctua.task import TaskItem, new_task

pq = PriorityQueue()
low = TaskItem(new_task("search", priority=1))
high = TaskItem(new_task("search", priority=9))
pq.push(low)
pq.push(high)
pq.contains([low.id, "missing"])   # {low.id: True, "missing": False}
pq.pop() is high                   # True
pq.remove(low.id)                  # True
len(pq)                            # 0
```

`pop()` on an empty queue raises `IndexError`; `items()` returns a copy in pop order.

## Tasks

`new_task(queue_key, payload, ...)` gives a task an id of the form `<queue_key>-<uuid4>`.
Unset or zero options take the defaults: priority 8, three retries, a 30-second timeout.
A task with neither a parent nor a source id becomes its own source.

`build_task_tree(tasks)` links tasks by `parent_task_id`; the root is the last task without a
parent. `task_to_dict(node)` renders the tree as nested dictionaries with the keys
`id`, `queue`, `finished`, `active` and `children` (an empty dict for no tree).

## Scheduler

```python
from noctua.scheduler import Scheduler, SchedulerConfig
from noctua.task import new_task

scheduler = Scheduler(SchedulerConfig())
scheduler.reset()                       # a new scheduler is stopped; reset() starts it
scheduler.register_handler("search", lambda task: print(task.payload))
scheduler.set_queue_qps("search", 60)

task = new_task("search", {"keyword": "coffee"})
scheduler.submit_task(task)
scheduler.wait_until_empty(timeout=60)  # True once nothing is queued or tracked
print(scheduler.status())
print(scheduler.task_statistics())      # (queue depth, processed, failed)
scheduler.shutdown()
```

How it behaves:

- Each queue has a dispatch loop. An auto-scaler sets the number of workers on a queue to
  `ceil(sqrt(depth))`. Workers that stay idle longer than `worker_idle_timeout` are retired.
- A handler fails a task by raising, or by running past the task's `timeout`. A failed task is
  resubmitted up to `max_retries` times, after `base_retry_delay * 2 ** retry` seconds. After
  that it counts as failed. A queue with no handler counts its tasks as failed.
- Each worker takes at most `qps` tasks per minute (`set_queue_qps`; zero or less means
  `default_qps`). The rate applies to workers created after the call.
- `submit_task` raises `SchedulerStoppedError` when the scheduler is not running, and
  `QueueFullError` when a queue already holds `max_queue_depth` tasks.
- Child tasks (`parent_task_id` set) are attached to their parent. A parent is marked finished
  once all its children are. A finished root is dropped with its subtree.
- `pause()` / `resume()` stop and restart handing out tasks. `task_tree()` returns the tracked
  tasks as a dictionary tree.

All `SchedulerConfig` durations are in seconds. Any field left at zero takes its default.

## Sign-server client

```python
from noctua.signer import SignServerClient, DouyinSignRequest, to_json

with SignServerClient("http://localhost:8989") as client:
    client.pong()                               # body of /signsrv/pong
    response = client.douyin_sign(DouyinSignRequest(uri="/aweme/v1/web/search/item/"))
    if response.data is not None:
        print(response.data.a_bogus)
    print(to_json(response))
```

There are also `xiaohongshu_sign`, `bilibili_sign` and `zhihu_sign`, each with its own request
and response dataclasses. `SignServerError` is raised when the server cannot be reached or
sends unreadable JSON. A non-2xx reply gives an empty response, whose `data` is `None`.

## Douyin helpers

```python
from noctua.douyin_tokens import (
    VerifyFpManager, gen_fake_ms_token, get_web_id, get_random_string,
    json_to_cookie_string, current_millis,
)
from noctua.douyin_models import parse_comment_response, parse_search_response

VerifyFpManager().gen_verify_fp()     # "verify_<base36 millis>_<36 chars>"
gen_fake_ms_token()                   # 128 characters ending in "=="
get_web_id()                          # 19 digits
get_random_string(16)
json_to_cookie_string('[{"name": "sessionid", "value": "token"}]')   # "sessionid=token"

result = parse_search_response('{"status_code": 0, "data": []}')
result.awemes                         # list of Aweme
```

The parsers accept JSON text, bytes or an already decoded dict. Every model has
`from_dict` and `to_dict`.

## Web helpers

```python
from noctua.web import success_payload, error_payload, is_macro_param, client_ip

success_payload("service alive")   # {"code": 200, "message": "ok", "data": "service alive"}
error_payload("bad request")       # {"code": 400, "message": "bad request", "data": None}
is_macro_param("__city__")         # False: a placeholder fails the check
client_ip({"X-Real-Ip": " 10.0.0.2 "}, "10.0.0.9:5000")   # "10.0.0.2"
```

## What this package does not do

- It has no HTTP server, routes or command-line program. `noctua.web` only builds the payloads
  and values such handlers would use.
- It stores nothing. There is no database layer for tasks, media, comments, users or accounts.
- It does not call the Douyin web API. It makes no requests for msToken or webid, and it has
  no proxy pool or account session handling. `noctua.douyin_tokens` generates tokens locally,
  and `noctua.douyin_models` only parses replies you already have.

## Tests

```
pytest
```