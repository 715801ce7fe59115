import pytest


@pytest.mark.asyncio
async def test_healthz(client):
    res = await client.get('/healthz')
    assert res.status_code == 200
    assert res.json() == {'status': 'ok'}


@pytest.mark.asyncio
async def test_index_page(client):
    res = await client.get('/')
    assert res.status_code == 200
    assert res.headers['content-type'].startswith('text/html')
    assert 'Create New Post' in res.text
    assert '/api/rpc' in res.text


@pytest.mark.asyncio
async def test_rpc_lists_methods(client):
    res = await client.get('/api/rpc')
    assert res.status_code == 200
    assert res.json()['methods'] == sorted([
        'posts.getAll', 'posts.getById', 'posts.create', 'posts.update', 'posts.delete',
    ])


def test_create_app_does_not_touch_upload_dir(collection, tmp_path):
    from postboard.main import create_app

    target = tmp_path / 'lazy-uploads'
    create_app(collection=collection, upload_dir=str(target))
    assert not target.exists()
