from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter()

PAGE_HTML = '''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Posts</title>
    <style>
        * { box-sizing: border-box; }
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            background: linear-gradient(135deg, #f8fafc 0%, #f1f5f9 100%);
            margin: 0;
            padding: 2rem 1rem;
            color: #0f172a;
        }
        main { max-width: 56rem; margin: 0 auto; }
        .header { display: flex; justify-content: space-between; align-items: center; }
        h1 { font-size: 1.875rem; margin: 0; }
        .card {
            background: #fff;
            border: 1px solid #e2e8f0;
            border-radius: 8px;
            padding: 1rem 1.25rem;
            margin-top: 1rem;
        }
        .card h2 { font-size: 1.125rem; margin: 0; }
        .meta { font-size: 0.875rem; color: #64748b; margin-top: 0.25rem; }
        .content { white-space: pre-wrap; color: #334155; }
        .card img { max-width: 100%; border-radius: 6px; margin-top: 0.5rem; }
        label { display: block; font-size: 0.875rem; font-weight: 500; margin: 0.75rem 0 0.25rem; }
        input[type=text], textarea {
            width: 100%;
            padding: 0.5rem;
            border: 1px solid #cbd5e1;
            border-radius: 6px;
            font: inherit;
        }
        button {
            background: #0f172a;
            color: #fff;
            border: none;
            border-radius: 6px;
            padding: 0.5rem 1rem;
            cursor: pointer;
        }
        button.outline { background: #fff; color: #0f172a; border: 1px solid #cbd5e1; }
        button.delete { background: none; color: #ef4444; padding: 0.25rem 0.5rem; }
        button:disabled { opacity: 0.6; cursor: default; }
        .row { display: flex; justify-content: space-between; align-items: flex-start; gap: 1rem; }
        .actions { display: flex; gap: 0.5rem; margin-top: 1rem; }
        .empty { text-align: center; padding: 3rem 0; color: #64748b; }
        .error { color: #ef4444; text-align: center; padding: 2rem 0; }
        .hidden { display: none; }
    </style>
</head>
<body>
<main>
    <div class="header">
        <h1>Posts</h1>
        <button id="toggle-form">+ New Post</button>
    </div>

    <form id="post-form" class="card hidden">
        <h2>Create New Post</h2>
        <label for="title">Title</label>
        <input type="text" id="title" maxlength="100" placeholder="Post title">
        <label for="author">Author</label>
        <input type="text" id="author" placeholder="Author name">
        <label for="content">Content</label>
        <textarea id="content" rows="5" placeholder="Post content"></textarea>
        <label for="image">Image (optional)</label>
        <input type="file" id="image" accept="image/*">
        <div class="actions">
            <button type="submit" id="submit">Create Post</button>
            <button type="button" class="outline" id="cancel">Cancel</button>
        </div>
    </form>

    <div id="posts"></div>
</main>
<script>
let rpcId = 0;

async function rpc(method, params) {
    const res = await fetch('/api/rpc', {
        method: 'POST',
        headers: {'Content-Type': 'application/json'},
        body: JSON.stringify({jsonrpc: '2.0', id: ++rpcId, method: method, params: params})
    });
    const body = await res.json();
    if (body.error) {
        throw new Error(body.error.message);
    }
    return body.result;
}

function readAsBase64(file) {
    return new Promise((resolve, reject) => {
        const reader = new FileReader();
        reader.onload = () => {
            const parts = String(reader.result || '').split(',');
            resolve(parts.length > 1 ? parts[1] : parts[0]);
        };
        reader.onerror = () => reject(reader.error);
        reader.readAsDataURL(file);
    });
}

function el(tag, className, text) {
    const node = document.createElement(tag);
    if (className) node.className = className;
    if (text !== undefined) node.textContent = text;
    return node;
}

function renderPosts(posts) {
    const list = document.getElementById('posts');
    list.replaceChildren();
    if (!posts.length) {
        const empty = el('div', 'empty');
        empty.append(el('p', '', 'No posts yet'), el('p', '', 'Click "New Post" to create your first post'));
        list.append(empty);
        return;
    }
    for (const post of posts) {
        const card = el('div', 'card');
        const row = el('div', 'row');
        const head = el('div');
        head.append(el('h2', '', post.title));
        head.append(el('p', 'meta', 'By ' + post.author + ' \\u2022 ' + new Date(post.createdAt).toLocaleDateString()));
        const del = el('button', 'delete', 'Delete');
        del.onclick = () => deletePost(post.id, del);
        row.append(head, del);
        card.append(row, el('p', 'content', post.content));
        if (post.imageUrl) {
            const img = el('img');
            img.src = post.imageUrl;
            img.alt = post.title;
            card.append(img);
        }
        list.append(card);
    }
}

async function loadPosts() {
    try {
        renderPosts(await rpc('posts.getAll'));
    } catch (err) {
        const list = document.getElementById('posts');
        list.replaceChildren(el('p', 'error', 'Error loading posts'));
    }
}

async function deletePost(id, button) {
    if (!confirm('Are you sure you want to delete this post?')) return;
    button.disabled = true;
    try {
        await rpc('posts.delete', id);
    } catch (err) {
        alert(err.message);
    }
    await loadPosts();
}

const form = document.getElementById('post-form');

function resetForm() {
    form.reset();
    form.classList.add('hidden');
}

document.getElementById('toggle-form').onclick = () => form.classList.toggle('hidden');
document.getElementById('cancel').onclick = resetForm;

form.onsubmit = async (e) => {
    e.preventDefault();
    const params = {
        title: document.getElementById('title').value,
        content: document.getElementById('content').value,
        author: document.getElementById('author').value
    };
    if (!params.title || !params.content || !params.author) {
        alert('Please fill in all fields');
        return;
    }
    const file = document.getElementById('image').files[0];
    if (file) {
        params.imageBase64 = await readAsBase64(file);
        params.imageName = file.name;
    }
    const submit = document.getElementById('submit');
    submit.disabled = true;
    submit.textContent = 'Creating...';
    try {
        await rpc('posts.create', params);
        resetForm();
        await loadPosts();
    } catch (err) {
        alert(err.message);
    } finally {
        submit.disabled = false;
        submit.textContent = 'Create Post';
    }
};

loadPosts();
</script>
</body>
</html>'''


@router.get('/', response_class=HTMLResponse, include_in_schema=False)
async def index():
    """Single-page post list and create form"""
    return HTMLResponse(PAGE_HTML)
