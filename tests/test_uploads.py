import pytest
from django.core.files.storage import FileSystemStorage
from django.core.files.uploadedfile import SimpleUploadedFile

from formkit.exceptions import UploadError
from formkit.services.uploads import (
    FileStorageService,
    contains_malicious_content,
    file_extensions,
    is_dangerous_filename,
    matches_accept,
)


@pytest.fixture
def storage(tmp_path):
    return FileSystemStorage(location=str(tmp_path / 'files'))


@pytest.fixture
def service(storage):
    return FileStorageService(storage=storage, upload_dir='uploads/')


def _upload(name, content=b'plain content', content_type='application/octet-stream'):
    return SimpleUploadedFile(name, content, content_type=content_type)


@pytest.mark.parametrize('name', [
    'shell.php', 'SHELL.PHP', 'shell.php.jpg', 'run.sh', 'setup.exe',
    'script.py', '.htaccess', 'page.phtml', 'trailing.php.',
])
def test_dangerous_names(name):
    assert is_dangerous_filename(name)


@pytest.mark.parametrize('name', ['photo.jpg', 'report.pdf', 'archive.tar.gz', 'README'])
def test_safe_names(name):
    assert not is_dangerous_filename(name)


def test_dangerous_extensions_are_configurable(settings):
    settings.FORMKIT = dict(settings.FORMKIT, DANGEROUS_EXTENSIONS=('svg',))
    assert is_dangerous_filename('icon.svg')
    assert not is_dangerous_filename('shell.php')


def test_file_extensions():
    assert file_extensions('archive.tar.gz') == ['tar', 'gz']
    assert file_extensions('/tmp/x/README') == []


@pytest.mark.parametrize('accept, name, content_type, expected', [
    ('*', 'anything.bin', 'application/octet-stream', True),
    ('image/*', 'photo.jpg', 'image/jpeg', True),
    ('image/*', 'notes.txt', 'text/plain', False),
    ('.pdf,.txt', 'notes.txt', 'text/plain', True),
    ('.pdf', 'notes.txt', 'text/plain', False),
    ('application/pdf', 'report.pdf', 'application/pdf', True),
    ('', 'whatever.zip', 'application/zip', True),
])
def test_matches_accept(accept, name, content_type, expected):
    assert matches_accept(name, content_type, accept) is expected


@pytest.mark.parametrize('content', [
    b'<?php system($_GET["c"]); ?>',
    b'GIF89a<?= `ls` ?>',
    b'<html><script>alert(1)</script>',
    b'#!/bin/sh\nrm -rf /',
    b'<%@ page import="java.io.*" %>',
])
def test_malicious_content_is_detected(content):
    assert contains_malicious_content(_upload('image.gif', content))


def test_binary_image_is_not_flagged():
    assert not contains_malicious_content(_upload('photo.jpg', b'\xff\xd8\xff\xe0' + bytes(range(256))))


def test_accept_upload_stores_file(service, storage):
    reference = service.accept_upload(_upload('my photo.jpg', b'\xff\xd8\xff', 'image/jpeg'))

    assert reference.startswith('uploads/')
    assert reference.endswith('_my_photo.jpg')
    assert storage.exists(reference)


def test_accept_upload_rejects_script_content(service, storage, caplog):
    with pytest.raises(UploadError):
        service.accept_upload(_upload('avatar.gif', b'GIF89a<?php echo 1; ?>'))
    assert 'malicious_upload' in caplog.text
    assert not storage.exists('uploads')


def test_accept_upload_rejects_dangerous_name(service):
    with pytest.raises(UploadError):
        service.accept_upload(_upload('innocent.jpg'), declared_name='evil.php')


def test_accept_many_is_all_or_nothing(service, storage):
    uploads = [
        _upload('a.txt', b'first'),
        _upload('b.txt', b'second'),
        _upload('c.txt', b'<?php bad(); ?>'),
    ]
    with pytest.raises(UploadError):
        service.accept_many(uploads)

    _dirs, files = storage.listdir('uploads') if storage.exists('uploads') else ([], [])
    assert files == []


def test_accept_many_returns_every_reference(service, storage):
    references = service.accept_many([_upload('a.txt', b'1'), _upload('b.txt', b'2')])
    assert len(references) == 2
    assert all(storage.exists(r) for r in references)
