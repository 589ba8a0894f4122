from test_utils_seed import create_job_order, ensure_customer, user_headers


def test_queue_orders_urgent_first_then_oldest(client):
    cust = ensure_customer('Queue Buyer')
    normal = create_job_order(cust.id, priority='normal')
    urgent = create_job_order(cust.id, priority='urgent', status='cutting')
    high = create_job_order(cust.id, priority='high', status='weighing')
    low = create_job_order(cust.id, priority='low')
    shipped = create_job_order(cust.id, priority='urgent', status='shipped')
    _, headers = user_headers(client, 'supervisor')
    resp = client.get('/production/queue', headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    ids = [o['id'] for o in body['data']]
    assert shipped.id not in ids
    mine = [i for i in ids if i in {normal.id, urgent.id, high.id, low.id}]
    assert mine == [urgent.id, high.id, normal.id, low.id]
    priorities = [o['priority'] for o in body['data']]
    rank = {'urgent': 0, 'high': 1, 'normal': 2, 'low': 3}
    assert priorities == sorted(priorities, key=rank.get)
    assert {urgent.id, high.id} <= {o['id'] for o in body['priority_queue']}
    assert all(o['priority'] in ('urgent', 'high') for o in body['priority_queue'])
    stats = body['stats']
    assert stats['total'] == len(ids)
    assert stats['queued'] + stats['active'] == stats['total']


def test_queue_access(client):
    _, cutter = user_headers(client, 'cutter')
    _, clerk = user_headers(client, 'clerk')
    assert client.get('/production/queue', headers=cutter).status_code == 200
    assert client.get('/production/queue', headers=clerk).status_code == 403
    assert client.get('/production/queue').status_code == 401
