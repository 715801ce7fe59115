import base64
import os

import pytest

from postboard.errors import UploadError, ValidationError
from postboard.file_storage import UploadPayload, UploadSink, decode_base64_upload


@pytest.fixture
def sink(upload_dir):
    return UploadSink(str(upload_dir))


@pytest.mark.asyncio
async def test_save_writes_exact_bytes_and_keeps_extension(sink, upload_dir):
    data = os.urandom(1234)
    url = await sink.save(UploadPayload(data, 'photo.png'))

    assert url.startswith('/uploads/')
    assert url.endswith('.png')
    path = upload_dir / url.rsplit('/', 1)[1]
    assert path.read_bytes() == data


@pytest.mark.asyncio
async def test_save_lowercases_extension_and_defaults_to_bin(sink):
    assert (await sink.save(UploadPayload(b'x', 'IMG_01.JPG'))).endswith('.jpg')
    assert (await sink.save(UploadPayload(b'x', None))).endswith('.bin')
    assert (await sink.save(UploadPayload(b'x', 'README'))).endswith('.bin')


@pytest.mark.asyncio
async def test_empty_upload_is_no_image(sink, upload_dir):
    assert await sink.save(UploadPayload(b'', 'photo.png')) is None
    assert await sink.save(None) is None
    assert not upload_dir.exists()


@pytest.mark.asyncio
async def test_save_creates_nested_directory(tmp_path):
    target = tmp_path / 'a' / 'b' / 'uploads'
    sink = UploadSink(str(target))
    await sink.save(UploadPayload(b'one', 'a.txt'))
    await sink.save(UploadPayload(b'two', 'b.txt'))
    assert len(list(target.iterdir())) == 2


@pytest.mark.asyncio
async def test_save_never_overwrites_existing_file(sink, upload_dir, monkeypatch):
    upload_dir.mkdir(parents=True)
    (upload_dir / 'taken.png').write_bytes(b'original')
    names = iter(['taken.png', 'fresh.png'])
    monkeypatch.setattr(UploadSink, 'generate_filename', staticmethod(lambda original: next(names)))

    url = await sink.save(UploadPayload(b'new', 'photo.png'))

    assert url == '/uploads/fresh.png'
    assert (upload_dir / 'taken.png').read_bytes() == b'original'
    assert (upload_dir / 'fresh.png').read_bytes() == b'new'


@pytest.mark.asyncio
async def test_save_fails_when_directory_cannot_be_created(tmp_path):
    blocker = tmp_path / 'file'
    blocker.write_text('not a directory')
    sink = UploadSink(str(blocker / 'uploads'))
    with pytest.raises(UploadError):
        await sink.save(UploadPayload(b'data', 'photo.png'))


@pytest.mark.asyncio
async def test_save_rejects_oversized_upload(upload_dir):
    sink = UploadSink(str(upload_dir), max_bytes=4)
    with pytest.raises(ValidationError) as exc:
        await sink.save(UploadPayload(b'12345', 'photo.png'))
    assert exc.value.fields == ['image']


def test_generated_names_differ():
    names = {UploadSink.generate_filename('photo.png') for _ in range(200)}
    assert len(names) == 200


@pytest.mark.asyncio
async def test_remove_deletes_stored_file(sink, upload_dir):
    url = await sink.save(UploadPayload(b'data', 'photo.png'))
    assert await sink.remove(url) is True
    assert list(upload_dir.iterdir()) == []
    assert await sink.remove(url) is False


def test_path_for_url_rejects_foreign_paths(sink):
    assert sink.path_for_url('/static/other.png') is None
    assert sink.path_for_url('/uploads/../secret') is None
    assert sink.path_for_url('/uploads/') is None
    assert sink.path_for_url('/uploads/ok.png').endswith('ok.png')


def test_decode_base64_upload():
    raw = b'\x89PNG\r\n'
    encoded = base64.b64encode(raw).decode()

    payload = decode_base64_upload(encoded, 'pic.png')
    assert payload == UploadPayload(raw, 'pic.png')

    from_data_url = decode_base64_upload('data:image/png;base64,' + encoded, 'pic.png')
    assert from_data_url.data == raw

    assert decode_base64_upload(None) is None
    assert decode_base64_upload('') is None


def test_decode_base64_upload_rejects_garbage():
    with pytest.raises(ValidationError) as exc:
        decode_base64_upload('not*base64!', 'pic.png')
    assert exc.value.fields == ['imageBase64']
