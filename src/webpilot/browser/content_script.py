"""In-page collector script for structured content extraction."""

CONTENT_COLLECTOR_JS = r"""
(args) => {
  const includeMetadata = !!(args && args.includeMetadata);
  const clean = (value) => (value || "").trim();

  const metadata = {};
  if (includeMetadata) {
    document.querySelectorAll("meta").forEach((meta) => {
      const name = meta.getAttribute("name") || meta.getAttribute("property");
      const content = meta.getAttribute("content");
      if (name && content) {
        metadata[name] = content;
      }
    });
  }

  const headings = [];
  document.querySelectorAll("h1, h2, h3, h4, h5, h6").forEach((heading) => {
    headings.push({
      level: parseInt(heading.tagName.charAt(1), 10),
      tag: heading.tagName.toLowerCase(),
      text: clean(heading.innerText),
      id: heading.id || null,
    });
  });

  const paragraphs = [];
  document.querySelectorAll("p").forEach((p) => {
    paragraphs.push(clean(p.innerText));
  });

  const lists = [];
  document.querySelectorAll("ul, ol").forEach((list) => {
    const items = [];
    list.querySelectorAll("li").forEach((li) => items.push(clean(li.innerText)));
    lists.push({ type: list.tagName.toLowerCase(), items });
  });

  const links = [];
  document.querySelectorAll("a[href]").forEach((link) => {
    links.push({
      text: clean(link.innerText),
      url: link.href,
      inNavigation: link.closest("nav, header, footer") !== null,
    });
  });

  const main = document.querySelector('main, article, [role="main"]');

  return {
    title: document.title || "",
    url: window.location.href,
    origin: window.location.origin,
    metadata,
    headings,
    paragraphs,
    lists,
    links,
    mainContentText: main ? clean(main.innerText) : null,
  };
}
"""
