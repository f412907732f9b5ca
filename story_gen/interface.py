"""
Module: story_gen.interface
Purpose: Single-page story generator UI served at /

The page fills its selects and example cards from /options, submits to
/generate and /retry, and mirrors the controller's view state from /ws.
Copying runs in the browser: navigator.clipboard first, then a hidden
textarea with document.execCommand("copy").
"""

html_content = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>AI Story Generator</title>
    <style>
        * { box-sizing: border-box; margin: 0; padding: 0; }
        body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
            background: #f5f3ee;
            color: #2b2b2b;
            line-height: 1.5;
        }
        .container { max-width: 760px; margin: 0 auto; padding: 32px 16px; }
        h1 { font-size: 28px; margin-bottom: 4px; }
        .subtitle { color: #666; margin-bottom: 24px; }
        .card {
            background: #fff;
            border-radius: 10px;
            padding: 20px;
            margin-bottom: 20px;
            box-shadow: 0 1px 3px rgba(0, 0, 0, 0.08);
        }
        label { display: block; font-weight: 600; margin: 12px 0 4px; }
        input, textarea, select {
            width: 100%;
            padding: 10px;
            border: 1px solid #d6d2c8;
            border-radius: 6px;
            font: inherit;
        }
        textarea { min-height: 90px; resize: vertical; }
        .row { display: flex; gap: 12px; }
        .row > div { flex: 1; }
        .btn {
            display: inline-block;
            padding: 10px 18px;
            border: none;
            border-radius: 6px;
            background: #3d6b5f;
            color: #fff;
            font: inherit;
            cursor: pointer;
        }
        .btn:disabled { background: #9fb3ad; cursor: not-allowed; }
        .btn--secondary { background: #e8e4da; color: #2b2b2b; }
        .btn--loading { opacity: 0.7; }
        .btn--copied { background: #5a9b6a; color: #fff; }
        .actions { margin-top: 16px; }
        .examples { display: grid; grid-template-columns: repeat(auto-fill, minmax(200px, 1fr)); gap: 10px; }
        .example-card {
            border: 1px solid #e0dccf;
            border-radius: 8px;
            padding: 10px;
            cursor: pointer;
            font-size: 14px;
        }
        .example-card:hover { border-color: #3d6b5f; }
        .example-card strong { display: block; }
        #loading-container, #error-container, #story-output { display: none; }
        .progress { height: 8px; background: #e8e4da; border-radius: 4px; overflow: hidden; margin-top: 8px; }
        #progress-bar { height: 100%; width: 0; background: #3d6b5f; transition: width 0.3s; }
        #error-container { border-left: 4px solid #b94a48; }
        #error-message { color: #b94a48; margin-bottom: 12px; }
        #story-content { white-space: pre-wrap; margin-bottom: 12px; }
        #generation-info { display: flex; gap: 16px; color: #666; font-size: 14px; margin-bottom: 12px; }
    </style>
</head>
<body>
<div class="container">
    <h1>AI Story Generator</h1>
    <p class="subtitle">Stories written by a language model running on this machine.</p>

    <form id="story-form" class="card" onsubmit="return false;">
        <label for="story-title">Title</label>
        <input id="story-title" type="text" placeholder="The Last Lighthouse Keeper">

        <label for="story-description">Description</label>
        <textarea id="story-description" placeholder="What should the story be about?"></textarea>

        <div class="row">
            <div>
                <label for="model-select">Model</label>
                <select id="model-select"></select>
            </div>
            <div>
                <label for="word-count">Length</label>
                <select id="word-count"></select>
            </div>
        </div>

        <div class="actions">
            <button id="generate-btn" class="btn" type="button" disabled>Generate Story</button>
        </div>
    </form>

    <div class="card">
        <label>Need inspiration?</label>
        <div id="examples" class="examples"></div>
    </div>

    <div id="loading-container" class="card">
        <div id="loading-text">Loading model...</div>
        <div class="progress"><div id="progress-bar"></div></div>
    </div>

    <div id="error-container" class="card">
        <div id="error-message"></div>
        <button id="retry-btn" class="btn btn--secondary" type="button">Try Again</button>
    </div>

    <div id="story-output" class="card">
        <div id="story-content"></div>
        <div id="generation-info"></div>
        <button id="copy-btn" class="btn btn--secondary" type="button">Copy</button>
        <button id="regenerate-btn" class="btn btn--secondary" type="button">Generate Another</button>
    </div>
</div>

<script>
    const $ = (id) => document.getElementById(id);
    let isGenerating = false;

    function checkBrowserCompatibility() {
        const isCompatible = 'WebSocket' in window && 'fetch' in window && 'Promise' in window;
        if (!isCompatible) {
            showError('Your browser may not be fully compatible with this application. ' +
                      'Please use a modern browser like Chrome, Firefox, or Safari.');
        }
    }

    function validateInputs() {
        const title = $('story-title').value.trim();
        const description = $('story-description').value.trim();
        const isValid = title.length > 0 && description.length > 0;
        $('generate-btn').disabled = !isValid || isGenerating;
        return isValid;
    }

    function hideAllSections() {
        $('loading-container').style.display = 'none';
        $('error-container').style.display = 'none';
        $('story-output').style.display = 'none';
    }

    function showLoading(progress, message) {
        hideAllSections();
        $('loading-text').textContent = message;
        $('progress-bar').style.width = `${Math.min(progress, 100)}%`;
        $('loading-container').style.display = 'block';
    }

    function showError(message) {
        hideAllSections();
        $('error-message').textContent = message;
        $('error-container').style.display = 'block';
    }

    function showStory(result) {
        hideAllSections();
        $('story-content').textContent = result.text;
        const info = $('generation-info');
        info.innerHTML = '';
        for (const text of [`Model: ${result.model_id}`, `Words: ${result.word_count}`,
                            `Time: ${result.elapsed_seconds.toFixed(1)}s`]) {
            const span = document.createElement('span');
            span.textContent = text;
            info.appendChild(span);
        }
        $('story-output').style.display = 'block';
    }

    function applyView(state) {
        if (state.view === 'loading') {
            showLoading(state.progress, state.message);
        } else if (state.view === 'error') {
            showError(state.message);
        } else if (state.view === 'result') {
            showStory(state.result);
        } else {
            hideAllSections();
        }
    }

    function setGenerating(active) {
        isGenerating = active;
        $('generate-btn').classList.toggle('btn--loading', active);
        validateInputs();
    }

    function connect() {
        const protocol = location.protocol === 'https:' ? 'wss' : 'ws';
        const socket = new WebSocket(`${protocol}://${location.host}/ws`);
        socket.onmessage = (event) => {
            const message = JSON.parse(event.data);
            if (message.type === 'view') {
                applyView(message);
            } else if (message.type === 'controls') {
                setGenerating(!message.generate_enabled);
            }
        };
        socket.onclose = () => setTimeout(connect, 2000);
    }

    async function post(path, body) {
        const response = await fetch(path, {
            method: 'POST',
            headers: {'Content-Type': 'application/json'},
            body: body ? JSON.stringify(body) : undefined,
        });
        const data = await response.json();
        if (!response.ok) {
            throw new Error(data.detail ? JSON.stringify(data.detail) : response.statusText);
        }
        return data;
    }

    async function generateStory() {
        if (!validateInputs()) {
            showError('Please fill in both the title and description fields.');
            return;
        }
        if (isGenerating) {
            return;
        }
        setGenerating(true);
        showLoading(0, 'Loading model...');
        try {
            const data = await post('/generate', {
                title: $('story-title').value,
                description: $('story-description').value,
                model: $('model-select').value,
                max_tokens: parseInt($('word-count').value, 10),
            });
            if (!data.busy) {
                applyView(data.state);
            }
        } catch (error) {
            console.error('Story generation error:', error);
            showError(`Generation error: ${error.message}. Please try again.`);
        } finally {
            setGenerating(false);
        }
    }

    function flashCopied() {
        const button = $('copy-btn');
        const originalText = button.textContent;
        button.textContent = 'Copied!';
        button.classList.add('btn--copied');
        setTimeout(() => {
            button.textContent = originalText;
            button.classList.remove('btn--copied');
        }, 2000);
    }

    function fallbackCopyToClipboard(text) {
        const textArea = document.createElement('textarea');
        textArea.value = text;
        textArea.style.position = 'fixed';
        textArea.style.left = '-999999px';
        textArea.style.top = '-999999px';
        document.body.appendChild(textArea);
        textArea.focus();
        textArea.select();
        try {
            document.execCommand('copy');
            flashCopied();
        } catch (error) {
            console.error('Fallback copy failed:', error);
        } finally {
            document.body.removeChild(textArea);
        }
    }

    async function copyToClipboard() {
        const text = $('story-content').textContent;
        try {
            await navigator.clipboard.writeText(text);
            flashCopied();
        } catch (error) {
            console.error('Copy failed:', error);
            fallbackCopyToClipboard(text);
        }
    }

    function fillSelect(select, items, valueKey, labelKey, selected) {
        select.innerHTML = '';
        for (const item of items) {
            const option = document.createElement('option');
            option.value = item[valueKey];
            option.textContent = item[labelKey];
            option.selected = item[valueKey] === selected;
            select.appendChild(option);
        }
    }

    function loadExamplePrompts(examples) {
        const container = $('examples');
        container.innerHTML = '';
        for (const example of examples) {
            const card = document.createElement('div');
            card.className = 'example-card';
            card.dataset.title = example.title;
            card.dataset.description = example.description;
            const strong = document.createElement('strong');
            strong.textContent = example.title;
            const span = document.createElement('span');
            span.textContent = example.description;
            card.append(strong, span);
            card.addEventListener('click', () => {
                $('story-title').value = card.dataset.title;
                $('story-description').value = card.dataset.description;
                validateInputs();
            });
            container.appendChild(card);
        }
    }

    async function loadOptions() {
        const response = await fetch('/options');
        const options = await response.json();
        fillSelect($('model-select'), options.models, 'id', 'label', options.default_model);
        fillSelect($('word-count'), options.length_choices, 'max_tokens', 'label', options.default_max_tokens);
        loadExamplePrompts(options.examples);
    }

    function initializeEventListeners() {
        $('generate-btn').addEventListener('click', generateStory);
        $('regenerate-btn').addEventListener('click', generateStory);
        $('retry-btn').addEventListener('click', generateStory);
        $('copy-btn').addEventListener('click', copyToClipboard);
        $('story-title').addEventListener('input', validateInputs);
        $('story-description').addEventListener('input', validateInputs);
        $('model-select').addEventListener('change', () => {
            post('/model', {model: $('model-select').value}).catch(
                (error) => console.error('Model change failed:', error));
        });
    }

    document.addEventListener('DOMContentLoaded', async () => {
        try {
            initializeEventListeners();
            checkBrowserCompatibility();
            await loadOptions();
            connect();
        } catch (error) {
            console.error('Failed to initialize Story Generator:', error);
            showError('Failed to initialize the application. Please refresh the page and try again.');
        }
    });

    window.addEventListener('unhandledrejection', (event) => {
        console.error('Unhandled promise rejection:', event.reason);
        event.preventDefault();
    });
</script>
</body>
</html>
"""
