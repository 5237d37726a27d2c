import threading

from network_relay.server.endpoint import Endpoint, EndpointTracker


def test_unset_until_first_update():
    tracker = EndpointTracker()
    assert tracker.get() is None
    assert not tracker.is_set


def test_update_overwrites_with_latest():
    tracker = EndpointTracker()
    assert tracker.update(("192.168.1.5", 5000))
    assert tracker.update(("192.168.1.6", 6000))
    assert tracker.get() == Endpoint("192.168.1.6", 6000)
    assert tracker.get().host == "192.168.1.6"


def test_update_reports_unchanged_endpoint():
    tracker = EndpointTracker()
    tracker.update(("10.0.0.1", 49152))
    assert not tracker.update(("10.0.0.1", 49152))


def test_concurrent_writers_never_mix_endpoints():
    tracker = EndpointTracker()
    writers = [("10.0.0.%d" % i, 5000 + i) for i in range(1, 5)]
    valid = {Endpoint(*w) for w in writers}
    stop = threading.Event()
    torn = []

    def write(addr):
        while not stop.is_set():
            tracker.update(addr)

    def read():
        while not stop.is_set():
            endpoint = tracker.get()
            if endpoint is not None and endpoint not in valid:
                torn.append(endpoint)

    threads = [threading.Thread(target=write, args=(w,)) for w in writers]
    threads.append(threading.Thread(target=read))
    for t in threads:
        t.start()
    stop.wait(0.5)
    stop.set()
    for t in threads:
        t.join()

    assert torn == []
    assert tracker.get() in valid
