"""Express API server template, emitted only with the api-backend feature."""

from __future__ import annotations

from intentforge.architecture.templates.base import FileTemplate, static, with_backend

SERVER_INDEX = """import cors from 'cors'
import express from 'express'

interface Item {
  id: string
  title: string
  description: string
  status: 'todo' | 'in-progress' | 'done'
  priority: 'high' | 'medium' | 'low'
  createdAt: string
}

const app = express()
const port = Number(process.env.PORT ?? 4000)
const items = new Map<string, Item>()

app.use(cors())
app.use(express.json())

app.get('/api/health', (_req, res) => {
  res.json({ status: 'ok', service: {{PROJECT_NAME_JS}} })
})

app.get('/api/items', (_req, res) => {
  res.json([...items.values()])
})

app.post('/api/items', (req, res) => {
  const { title, description = '', priority = 'medium' } = req.body ?? {}
  if (typeof title !== 'string' || title.trim() === '') {
    res.status(400).json({ error: 'title is required' })
    return
  }
  const item: Item = {
    id: crypto.randomUUID(),
    title: title.trim(),
    description,
    status: 'todo',
    priority,
    createdAt: new Date().toISOString(),
  }
  items.set(item.id, item)
  res.status(201).json(item)
})

app.patch('/api/items/:id', (req, res) => {
  const existing = items.get(req.params.id)
  if (!existing) {
    res.status(404).json({ error: 'not found' })
    return
  }
  const updated = { ...existing, ...req.body, id: existing.id }
  items.set(existing.id, updated)
  res.json(updated)
})

app.delete('/api/items/:id', (req, res) => {
  if (!items.delete(req.params.id)) {
    res.status(404).json({ error: 'not found' })
    return
  }
  res.status(204).end()
})

app.listen(port, () => {
  console.log(`API listening on port ${port}`)
})
"""


def get_server_templates() -> list[FileTemplate]:
    return [
        FileTemplate(
            "server/index.ts", "typescript", "Express API server",
            static(SERVER_INDEX), with_backend,
        ),
    ]
